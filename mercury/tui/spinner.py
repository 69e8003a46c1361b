"""Loading spinner state, using Rich's spinner frames."""

from rich.spinner import Spinner

from mercury.tui.commands import Tick


class SpinnerState:
    """Frame counter driven by SpinnerTick messages.

    Only one tick chain runs at a time: ``start()`` returns a Tick command the
    first time and None while a chain is already running.  Ticks from an older
    chain carry a stale tag and are ignored.
    """

    def __init__(self, name: str = "line", interval: float = 0.1) -> None:
        self.frames: list[str] = list(Spinner(name).frames)
        self.interval = interval
        self.frame = 0
        self.tag = 0
        self.running = False

    def start(self) -> Tick | None:
        if self.running:
            return None
        self.running = True
        self.tag += 1
        return Tick(tag=self.tag, interval=self.interval)

    def advance(self, tag: int) -> Tick | None:
        """Move one frame on and schedule the next tick, unless ``tag`` is stale."""
        if tag != self.tag or not self.running:
            return None
        self.frame = (self.frame + 1) % len(self.frames)
        return Tick(tag=self.tag, interval=self.interval)

    def stop(self) -> None:
        self.running = False

    def view(self) -> str:
        return self.frames[self.frame]
