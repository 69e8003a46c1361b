"""Command dispatcher — runs commands off the update path and queues their results."""

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager

from mercury.tui.commands import Command, LaunchEditor, describe_error
from mercury.tui.messages import EditorClosed, Failed, Msg

logger = logging.getLogger(__name__)

#: Returns a context manager that hands the terminal to a child process.
SuspendFactory = Callable[[], AbstractContextManager[object]]


class CommandDispatcher:
    """Executes commands and feeds every result back into one message queue.

    Network commands run as independent asyncio tasks, so several can be in
    flight at once and their results land on the queue in completion order.
    The editor is the exception: it runs synchronously inside ``suspend()``
    because the terminal cannot be shared while it is open.

    No command is ever allowed to raise out of here.  Exceptions become
    ``Failed`` messages.
    """

    def __init__(
        self,
        queue: asyncio.Queue[Msg],
        suspend: SuspendFactory | None = None,
    ) -> None:
        self._queue = queue
        self._suspend = suspend or contextlib.nullcontext
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of commands still running."""
        return len(self._tasks)

    def dispatch(self, commands: Iterable[Command]) -> None:
        """Start every command.  Must be called from inside the event loop."""
        for command in commands:
            if command.suspends_terminal and isinstance(command, LaunchEditor):
                self._queue.put_nowait(self._run_suspended(command))
                continue
            task = asyncio.get_running_loop().create_task(self._run(command))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def aclose(self) -> None:
        """Cancel anything still in flight.  Results of cancelled work are dropped."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    # ── Internal ───────────────────────────────────────────────────────────────

    async def _run(self, command: Command) -> None:
        try:
            msg = await command.run()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("%s failed: %s", type(command).__name__, exc, exc_info=True)
            msg = Failed(error=describe_error(exc))
        if msg is not None:
            await self._queue.put(msg)

    def _run_suspended(self, command: LaunchEditor) -> Msg:
        try:
            with self._suspend():
                return command.run_blocking()
        except Exception as exc:  # noqa: BLE001
            # e.g. Textual's SuspendNotSupported on a web driver
            logger.error("Cannot suspend terminal for editor: %s", exc)
            return EditorClosed(path=command.path, error=describe_error(exc))
