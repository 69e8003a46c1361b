"""Textual host — owns the terminal and bridges it to the Program loop.

The app holds no mail state of its own.  Key presses and resizes become
messages on the program's queue; after every message the program calls
``refresh_view`` and the three Static widgets are redrawn from the model.
"""

import logging

from textual import events
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Static

from mercury.tui.messages import KeyPressed, Resized
from mercury.tui.model import Model
from mercury.tui.program import Program
from mercury.tui.view import render_list, render_preview, render_status

logger = logging.getLogger(__name__)


class MercuryApp(App[None]):
    """Two-pane mail client: inbox list on the left, preview on the right."""

    CSS = """
    #panes {
        height: 1fr;
    }

    #list {
        width: 1fr;
        height: 100%;
    }

    #preview {
        width: 2fr;
        height: 100%;
    }

    #status {
        height: 1;
        padding: 0 1;
    }
    """

    ENABLE_COMMAND_PALETTE = False

    def __init__(self, model: Model) -> None:
        super().__init__()
        self.model = model
        self.program = Program(model, render=self.refresh_view, suspend=self.suspend)

    def compose(self) -> ComposeResult:
        with Horizontal(id="panes"):
            yield Static(id="list")
            yield Static(id="preview")
        yield Static(id="status")

    def on_mount(self) -> None:
        self.program.send(Resized(width=self.size.width, height=self.size.height))
        self.run_worker(self._run_program(), name="program", exclusive=True)

    async def _run_program(self) -> None:
        await self.program.run()
        self.exit()

    async def on_key(self, event: events.Key) -> None:
        # Every key goes through the state machine, including tab and ctrl+c.
        event.prevent_default()
        event.stop()
        self.program.send(KeyPressed(key=event.key, character=event.character))

    def on_resize(self, event: events.Resize) -> None:
        self.program.send(Resized(width=event.size.width, height=event.size.height))

    def refresh_view(self, model: Model) -> None:
        if not self.is_running:
            return
        self.query_one("#list", Static).update(render_list(model))
        self.query_one("#preview", Static).update(render_preview(model))
        self.query_one("#status", Static).update(render_status(model))
