from __future__ import annotations

from textual.app import App
from textual.binding import Binding


class HonorariosApp(App):
    """Honorarios TUI application."""

    CSS_PATH = "app.tcss"
    TITLE = "Honorarios"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("q", "quit", "Salir", priority=True),
    ]

    def on_mount(self) -> None:
        from honorarios.tui.screens.dashboard import DashboardScreen

        self.push_screen(DashboardScreen())
