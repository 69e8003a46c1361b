"""Program loop — one queue, one handler."""

import asyncio
import logging
from collections.abc import Callable

from mercury.tui.commands import Quit
from mercury.tui.dispatcher import CommandDispatcher, SuspendFactory
from mercury.tui.messages import Msg
from mercury.tui.model import Model

logger = logging.getLogger(__name__)


class Program:
    """Feeds messages to the model one at a time and runs what it asks for.

    Terminal input is pushed in with ``send()``; command results are pushed by
    the dispatcher.  Both land on the same queue, so the model only ever sees
    one message at a time, in arrival order.

    Usage::

        program = Program(model, render=app.refresh_view, suspend=app.suspend)
        await program.run()
    """

    def __init__(
        self,
        model: Model,
        render: Callable[[Model], None] | None = None,
        suspend: SuspendFactory | None = None,
    ) -> None:
        self.model = model
        self.queue: asyncio.Queue[Msg] = asyncio.Queue()
        self.dispatcher = CommandDispatcher(self.queue, suspend=suspend)
        self._render = render or (lambda _model: None)
        self._running = False

    def send(self, msg: Msg) -> None:
        """Queue a message from outside the loop (keys, resizes)."""
        self.queue.put_nowait(msg)

    async def run(self) -> None:
        """Process messages until the model asks to quit."""
        self._running = True
        try:
            if self._handle_commands(self.model.init()):
                return
            self._render(self.model)
            while self._running:
                msg = await self.queue.get()
                if self.step(msg):
                    break
        finally:
            self._running = False
            await self.dispatcher.aclose()
            logger.info("Program stopped")

    def step(self, msg: Msg) -> bool:
        """Apply one message.  Returns True when the program should stop."""
        try:
            commands = self.model.update(msg)
        except Exception as exc:  # noqa: BLE001
            # A bug in a transition must not take the session down with it.
            logger.error("Update failed on %r: %s", msg, exc, exc_info=True)
            self.model.fail(f"internal error: {exc}")
            commands = []
        stop = self._handle_commands(commands)
        if not stop:
            self._render(self.model)
        return stop

    def _handle_commands(self, commands: list) -> bool:
        if any(isinstance(c, Quit) for c in commands):
            return True
        self.dispatcher.dispatch(commands)
        return False
