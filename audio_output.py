import logging

import numpy as np
import pyaudio

from errors import AudioDeviceError

logger = logging.getLogger(__name__)


class AudioOutput:
    """PyAudio output stream that pulls blocks from an OscillatorBank."""

    def __init__(self, bank):
        self.bank = bank
        self.p = None
        self.stream = None

    def open(self):
        s = self.bank.settings
        try:
            self.p = pyaudio.PyAudio()
            self.stream = self.p.open(
                format=pyaudio.paFloat32,
                channels=s.channels,
                rate=s.sample_rate,
                output=True,
                frames_per_buffer=s.buffer_size,
                stream_callback=self.callback
            )
            self.stream.start_stream()
        except (OSError, ValueError) as exc:
            self.shutdown()
            raise AudioDeviceError(f"Could not open audio output: {exc}") from exc
        logger.info("Audio output open: %d Hz, %d ch, %d frames/buffer",
                    s.sample_rate, s.channels, s.buffer_size)
        return self

    def callback(self, in_data, frame_count, time_info, status):
        block = self.bank.fill(frame_count)
        return (block.astype(np.float32).tobytes(), pyaudio.paContinue)

    def shutdown(self):
        if self.stream is not None:
            try:
                if self.stream.is_active():
                    self.stream.stop_stream()
                self.stream.close()
            except OSError as exc:
                logger.warning("Error closing audio stream: %s", exc)
            self.stream = None
        if self.p is not None:
            self.p.terminate()
            self.p = None
