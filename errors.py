class WaveGameError(Exception):
    """Base error for the wave tuning minigame."""


class InvalidSettingsError(WaveGameError):
    """Raised when a settings object violates its own bounds."""


class AudioDeviceError(WaveGameError):
    """Raised when the audio output stream cannot be opened."""
