from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

from honorarios.models.quote import Quote
from honorarios.services import quote_lifecycle as lifecycle
from honorarios.utils.formatters import format_cop

# Targets a quote never leaves
_TERMINAL = frozenset(s for s, nxt in lifecycle.TRANSITIONS.items() if not nxt)


class ConfirmScreen(ModalScreen[bool]):
    """Summary of a quote and the status it is about to move to; y confirms, n cancels."""

    DEFAULT_CSS = """
    ConfirmScreen {
        align: center middle;
        background: $surface 80%;
    }
    #confirm-dialog {
        width: 56;
        height: auto;
        max-height: 16;
        background: $surface;
        border: thick $warning;
        padding: 1 2;
    }
    #confirm-summary {
        color: $text-muted;
    }
    #confirm-dialog .button-bar {
        height: 3;
        margin-top: 1;
        align-horizontal: right;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancelar"),
        Binding("n", "cancel", show=False),
        Binding("y", "confirm", show=False),
    ]

    def __init__(self, quote: Quote, action: str) -> None:
        super().__init__()
        self._quote = quote
        self._target = lifecycle.ACTION_TARGETS[action]

    def compose(self) -> ComposeResult:
        q = self._quote
        label = lifecycle.STATUS_LABELS[self._target]
        with Vertical(id="confirm-dialog"):
            yield Static(f"Marcar {q.consecutivo} como [bold]{label.upper()}[/bold]", id="confirm-message")
            yield Label(
                f"{q.oportunidad_id} · {format_cop(q.valor_total)}"
                + (f"\n{q.descripcion}" if q.descripcion else ""),
                id="confirm-summary",
            )
            if self._target in _TERMINAL:
                yield Static(f"Una cotización {label.lower()} no se puede modificar.", id="confirm-warning")
            with Horizontal(classes="button-bar"):
                yield Button("✕ Cancelar", id="btn-cancel")
                yield Button("▶ Confirmar", id="btn-confirm", variant="warning")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-confirm")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
