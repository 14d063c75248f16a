class Countdown:
    """Elapsed-time accumulator advanced once per UI tick.

    Fires ``on_done`` exactly once when the elapsed time reaches
    ``duration``. A cancelled countdown never fires.
    """

    def __init__(self, duration, on_done=None):
        self.duration = max(0.0, float(duration))
        self.on_done = on_done
        self.elapsed = 0.0
        self.active = True
        self.done = False

    @property
    def progress(self):
        if self.duration == 0.0:
            return 1.0 if self.done else 0.0
        return min(1.0, self.elapsed / self.duration)

    def advance(self, dt):
        if not self.active:
            return False
        self.elapsed = min(self.duration, self.elapsed + max(0.0, dt))
        if self.elapsed >= self.duration:
            self.active = False
            self.done = True
            if self.on_done is not None:
                self.on_done()
            return True
        return False

    def cancel(self):
        self.active = False
        self.on_done = None
