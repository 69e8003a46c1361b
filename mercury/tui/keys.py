"""Key bindings for the TUI."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Binding:
    keys: tuple[str, ...]
    label: str
    description: str

    def matches(self, key: str) -> bool:
        return key in self.keys


@dataclass(frozen=True)
class KeyMap:
    up: Binding = Binding(("up", "k"), "↑/k", "up")
    down: Binding = Binding(("down", "j"), "↓/j", "down")
    enter: Binding = Binding(("enter",), "enter", "preview")
    tab: Binding = Binding(("tab",), "tab", "switch")
    quit: Binding = Binding(("q", "ctrl+c"), "q", "quit")
    refresh: Binding = Binding(("r",), "r", "refresh")
    mark_read: Binding = Binding(("m",), "m", "mark read")
    delete: Binding = Binding(("d",), "d", "delete")
    compose: Binding = Binding(("c",), "c", "compose")
    reply: Binding = Binding(("R", "shift+r"), "R", "reply")

    def short_help(self) -> list[Binding]:
        """Bindings shown in the status bar when it has nothing else to say."""
        return [self.compose, self.refresh, self.mark_read, self.delete, self.reply, self.tab, self.quit]


KEYS = KeyMap()
