from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from honorarios.models.quote import Quote


class QuoteFormScreen(ModalScreen[bool]):
    """Create a draft quote, or edit one that is still a draft."""

    BINDINGS = [
        Binding("escape", "go_back", "Volver"),
    ]

    def __init__(self, quote: Quote | None = None) -> None:
        super().__init__()
        self._quote = quote

    def compose(self) -> ComposeResult:
        title = f"Editar {self._quote.consecutivo}" if self._quote else "Nueva cotización"
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static(title, id="header-bar")
                yield Button("✕", id="btn-modal-close")

            with Container(id="form-container"):
                yield Label("", id="numero-info")
                yield Label("Oportunidad", classes="form-label")
                yield Input(
                    placeholder="proyecto-web-acme",
                    id="oportunidad",
                    tooltip="Identificador de la oportunidad de negocio",
                )
                yield Label("Valor total (antes de IVA)", classes="form-label")
                yield Input(placeholder="5.000.000", id="valor")
                yield Label("Descripción", classes="form-label")
                yield Input(placeholder="Desarrollo sitio web", id="descripcion")
                with Horizontal(classes="button-bar"):
                    yield Button("✕ Cerrar", id="btn-form-cerrar")
                    yield Button("▷ Calcular", id="btn-calcular", tooltip="Ver retenciones")
                    yield Button("▶ Guardar", id="btn-guardar", variant="primary")
                yield Label("", id="error-label")

    def on_mount(self) -> None:
        if self._quote is not None:
            q = self._quote
            oportunidad = self.query_one("#oportunidad", Input)
            oportunidad.value = q.oportunidad_id
            oportunidad.disabled = True
            self.query_one("#valor", Input).value = str(q.valor_total)
            self.query_one("#descripcion", Input).value = q.descripcion
            self.query_one("#numero-info", Label).update(f"Número: {q.consecutivo}")
            self.query_one("#valor", Input).focus()
        else:
            self._load_next_number()
            self.query_one("#oportunidad", Input).focus()

    @work(thread=True)
    def _load_next_number(self) -> None:
        try:
            from honorarios.utils.sequence import peek_next_quote_number

            text = f"Número: {peek_next_quote_number()}"
        except Exception as e:
            text = f"error - {e}"
        self.app.call_from_thread(self.query_one("#numero-info", Label).update, text)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-guardar":
                self._do_save()
            case "btn-calcular":
                self._open_calculator()
            case "btn-form-cerrar" | "btn-modal-close":
                self.dismiss(False)

    def _read_valor(self) -> str | None:
        from honorarios.utils.validators import validate_monetary

        try:
            return validate_monetary(self.query_one("#valor", Input).value)
        except ValueError as e:
            self.query_one("#error-label", Label).update(str(e))
            return None

    def _do_save(self) -> None:
        error_label = self.query_one("#error-label", Label)
        error_label.update("")

        oportunidad = self.query_one("#oportunidad", Input).value.strip()
        if not oportunidad:
            error_label.update("Oportunidad obligatoria")
            return
        valor = self._read_valor()
        if valor is None:
            return
        descripcion = self.query_one("#descripcion", Input).value

        self.query_one("#btn-guardar", Button).disabled = True
        self._run_save(oportunidad, valor, descripcion)

    @work(thread=True)
    def _run_save(self, oportunidad: str, valor: str, descripcion: str) -> None:
        from honorarios.utils.quote_store import create_quote, update_quote

        try:
            if self._quote is None:
                quote = create_quote(oportunidad, valor, descripcion)
            else:
                quote = update_quote(self._quote.id, valor_total=valor, descripcion=descripcion)
        except Exception as e:
            self.app.call_from_thread(self._on_save_error, str(e))
            return
        self.app.call_from_thread(self._on_save_done, quote)

    def _on_save_done(self, quote: Quote) -> None:
        self.notify(f"Cotización {quote.consecutivo} guardada", timeout=3)
        self.dismiss(True)

    def _on_save_error(self, msg: str) -> None:
        self.query_one("#error-label", Label).update(f"Error: {msg}")
        self.query_one("#btn-guardar", Button).disabled = False

    def _open_calculator(self) -> None:
        valor = self._read_valor()
        if valor is None:
            return
        from honorarios.tui.screens.breakdown import BreakdownScreen

        self.app.push_screen(BreakdownScreen(valor=valor))

    def action_go_back(self) -> None:
        self.dismiss(False)
