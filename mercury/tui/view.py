"""Rich renderables for the three screen regions: list, preview, status bar."""

from rich import box
from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from mercury.tui.keys import KEYS
from mercury.tui.model import Focus, Model
from mercury.tui.preview_panel import PLACEHOLDER

FOCUSED_BORDER = "color(69)"
BLURRED_BORDER = "color(240)"
MUTED = "color(242)"


def _panel(body: object, focused: bool, title: str | None = None) -> Panel:
    return Panel(
        body,  # type: ignore[arg-type]
        title=title,
        title_align="left",
        box=box.HEAVY if focused else box.ROUNDED,
        border_style=FOCUSED_BORDER if focused else BLURRED_BORDER,
        padding=(0, 1),
    )


def render_list(model: Model) -> Panel:
    panel = model.list
    rows = panel.rows()
    lines: list[Text] = []

    if panel.filtering or panel.filter_text:
        cursor = "█" if panel.filtering else ""
        lines.append(Text(f"Filter: {panel.filter_text}{cursor}", style=MUTED))

    if not rows:
        lines.append(Text("No emails" if not panel.filter_text else "No matches", style=MUTED))

    for i in panel.window():
        row = rows[i]
        selected = i == panel.index
        title_style = "bold" if row.unread else ""
        if selected:
            title_style = f"{title_style} reverse".strip()
        lines.append(Text(row.title, style=title_style, no_wrap=True, overflow="ellipsis"))
        lines.append(Text(f"  {row.description}", style=MUTED, no_wrap=True, overflow="ellipsis"))

    return _panel(
        Group(*lines),
        focused=model.focus is Focus.LIST,
        title="[bold color(62)]Inbox[/]",
    )


def render_preview(model: Model) -> Panel:
    focused = model.focus is Focus.PREVIEW
    preview = model.preview
    if preview.email is None:
        return _panel(Text(PLACEHOLDER, style=MUTED), focused)

    text = Text()
    header_count = len(preview.headers())
    for n, line in enumerate(preview.visible_lines(), start=preview.offset):
        if n < header_count:
            label, _, value = line.partition(": ")
            text.append(f"{label}: ", style=MUTED)
            text.append(value, style="bold" if label == "Subject" else "")
        elif n == header_count:
            text.append(line, style="color(240)")
        else:
            text.append(line)
        text.append("\n")
    text.rstrip()
    return _panel(text, focused)


def render_status(model: Model) -> Text:
    if model.error:
        return Text(model.error, style="bold color(9)")
    if model.loading:
        text = Text(model.spinner.view(), style=FOCUSED_BORDER)
        text.append(" Loading...", style=MUTED)
        return text
    if model.status:
        return Text(model.status, style=MUTED)

    text = Text()
    for i, binding in enumerate(KEYS.short_help()):
        if i:
            text.append(" • ", style="color(240)")
        text.append(binding.label, style="bold color(246)")
        text.append(f" {binding.description}", style=MUTED)
    return text
