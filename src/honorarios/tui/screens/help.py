from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, RichLog, Static

from honorarios.utils.formatters import FISCAL_DISCLAIMER

_SHORTCUTS = (
    ("n", "Nueva", "Crear una cotización en borrador"),
    ("e", "Editar", "Editar el borrador seleccionado"),
    ("s", "Enviar", "Enviar al cliente (válida 30 días)"),
    ("a", "Aceptar", "Marcar como aceptada"),
    ("r", "Rechazar", "Marcar como rechazada"),
    ("o", "Reabrir", "Volver a enviar una rechazada"),
    ("d", "Duplicar", "Copiar como nuevo borrador"),
    ("x", "Vencer", "Marcar vencidas las que pasaron su validez"),
    ("c", "Calcular", "Calculadora de retenciones"),
    ("p", "Perfil", "Editar tu perfil fiscal"),
    ("l", "Clientes", "Administrar clientes"),
    ("v", "Validar", "Revisar configuración y datos"),
    ("f", "Filtrar", "Filtrar por estado"),
    ("h", "Ayuda", "Esta pantalla"),
    ("q", "Salir", "Cerrar la aplicación"),
)


class HelpScreen(ModalScreen):
    """Keyboard shortcuts, quote lifecycle and disclaimer."""

    BINDINGS = [
        Binding("escape", "go_back", "Volver"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Ayuda", id="header-bar")
                yield Button("✕", id="btn-modal-close")
            yield RichLog(id="help-content", wrap=True, markup=True)
            with Horizontal(classes="button-bar"):
                yield Button("✕ Cerrar", id="btn-volver")

    def on_mount(self) -> None:
        log = self.query_one("#help-content", RichLog)

        log.write("[bold]Honorarios[/bold]")
        log.write("")
        log.write(
            "Cotizaciones y retenciones para profesionales independientes en Colombia: "
            "IVA, retefuente, reteICA y reteIVA sobre cada valor que facturas."
        )
        log.write("")

        log.write("[bold]Atajos de teclado[/bold]")
        log.write("")
        for key, name, desc in _SHORTCUTS:
            log.write(f"  [bold cyan]{key}[/bold cyan]  {name:<10} {desc}")
        log.write("")
        log.write("  [bold cyan]j / ↓[/bold cyan]  Siguiente fila")
        log.write("  [bold cyan]k / ↑[/bold cyan]  Fila anterior")
        log.write("  [bold cyan]enter[/bold cyan]  Ver retenciones de la cotización")
        log.write("")

        log.write("[bold]Ciclo de una cotización[/bold]")
        log.write("")
        log.write("  borrador → enviada → aceptada | rechazada | vencida")
        log.write("  rechazada → enviada (reabrir)")
        log.write("")
        log.write(
            "Solo puede haber una cotización enviada por oportunidad. "
            "Acepta o rechaza la actual antes de enviar otra."
        )
        log.write("")

        log.write("[bold yellow]Aviso[/bold yellow]")
        log.write("")
        log.write(FISCAL_DISCLAIMER)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id in ("btn-volver", "btn-modal-close"):
            self.app.pop_screen()

    def action_go_back(self) -> None:
        self.app.pop_screen()
