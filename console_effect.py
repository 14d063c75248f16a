class ConsoleEffect:
    """Terminal-style text: typewriter reveal, then an optional blink.

    Driven by tick(dt) from the frame loop. ``on_change(text, visible)`` is
    called whenever the shown text or its visibility changes.
    """

    def __init__(self, on_change=None):
        self.on_change = on_change
        self.text = ""
        self.visible = True
        self._target = ""
        self._speed = 0.0
        self._interval = 0.0
        self._elapsed = 0.0
        self._mode = None   # "typing", "blinking" or None
        self._on_complete = None

    @property
    def is_typing(self):
        return self._mode == "typing"

    @property
    def is_blinking(self):
        return self._mode == "blinking"

    def play_typewriter(self, text, speed=0.05, on_complete=None):
        self._mode = "typing"
        self._target = text
        self._speed = max(0.0, speed)
        self._elapsed = 0.0
        self._on_complete = on_complete
        if not text or self._speed == 0.0:
            self._finish_typing()
        else:
            self._show(text[:1], True)

    def start_blinking(self, interval=0.5):
        self._mode = "blinking"
        self._interval = max(1e-3, interval)
        self._elapsed = 0.0
        # First blink hides the text straight away
        self._show(self.text, False)

    def stop(self):
        self._mode = None
        self._on_complete = None
        self._show(self.text, True)

    def tick(self, dt):
        if self._mode is None:
            return
        self._elapsed += dt

        if self._mode == "typing":
            # A character appears, then the effect waits one interval
            count = min(len(self._target), int(self._elapsed / self._speed) + 1)
            if count != len(self.text):
                self._show(self._target[:count], True)
            if self._elapsed >= len(self._target) * self._speed:
                self._finish_typing()
            return

        while self._elapsed >= self._interval:
            self._elapsed -= self._interval
            self._show(self.text, not self.visible)

    def _finish_typing(self):
        self._mode = None
        self._show(self._target, True)
        callback, self._on_complete = self._on_complete, None
        if callback is not None:
            callback()

    def _show(self, text, visible):
        self.text = text
        self.visible = visible
        if self.on_change is not None:
            self.on_change(text, visible)
