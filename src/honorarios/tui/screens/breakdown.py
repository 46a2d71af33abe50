from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Label, Select, Static

from honorarios.utils.formatters import FISCAL_DISCLAIMER

if TYPE_CHECKING:
    from honorarios.services.billing import PreparedBreakdown

_SIN_CLIENTE = "__sin_cliente__"

_ALERT_STYLES = {"danger": "bold red", "warning": "yellow", "info": "cyan"}


class BreakdownScreen(ModalScreen):
    """Withholding calculator: what the client pays, withholds and transfers."""

    BINDINGS = [
        Binding("escape", "go_back", "Volver"),
    ]

    def __init__(self, valor: str = "", client_slug: str | None = None) -> None:
        super().__init__()
        self._valor = valor
        self._client_slug = client_slug

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Calculadora de retenciones", id="header-bar")
                yield Button("✕", id="btn-modal-close")

            with Container(id="form-container"):
                yield Label("Valor bruto", classes="form-label")
                yield Input(value=self._valor, placeholder="5.000.000", id="valor")
                yield Label("Cliente", classes="form-label")
                yield Select(
                    [("Sin cliente (persona jurídica retenedora)", _SIN_CLIENTE)],
                    value=_SIN_CLIENTE,
                    allow_blank=False,
                    id="client-select",
                )
                yield Label("Costos del proyecto (opcional)", classes="form-label")
                yield Input(placeholder="0", id="costo")
                with Horizontal(classes="button-bar"):
                    yield Button("✕ Cerrar", id="btn-cerrar")
                    yield Button("▶ Calcular", id="btn-calcular", variant="primary")
                yield Label("", id="error-label")

            with Container(id="result-container"):
                yield DataTable(id="breakdown-table", show_header=False, cursor_type="none")
                yield Static("", id="alerts")
                yield Static(FISCAL_DISCLAIMER, id="disclaimer")

    def on_mount(self) -> None:
        self.query_one("#result-container").display = False
        self._load_clients()
        if not self._valor:
            self.query_one("#valor", Input).focus()

    @work(thread=True)
    def _load_clients(self) -> None:
        try:
            from honorarios.config import list_clients

            clients = list_clients()
        except Exception:
            clients = []
        self.app.call_from_thread(self._populate_clients, clients)

    def _populate_clients(self, clients: list[str]) -> None:
        select = self.query_one("#client-select", Select)
        select.set_options(
            [("Sin cliente (persona jurídica retenedora)", _SIN_CLIENTE), *((c, c) for c in clients)]
        )
        select.value = self._client_slug if self._client_slug in clients else _SIN_CLIENTE
        # A prefilled amount is calculated once the client list is known
        if self._valor:
            self._do_calculate()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-calcular":
                self._do_calculate()
            case "btn-cerrar" | "btn-modal-close":
                self.app.pop_screen()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._do_calculate()

    def _do_calculate(self) -> None:
        from honorarios.utils.validators import validate_monetary

        error_label = self.query_one("#error-label", Label)
        error_label.update("")

        try:
            valor = validate_monetary(self.query_one("#valor", Input).value)
            costo_raw = self.query_one("#costo", Input).value.strip()
            costo = validate_monetary(costo_raw) if costo_raw else "0"
        except ValueError as e:
            error_label.update(str(e))
            return

        sel = self.query_one("#client-select", Select).value
        client_slug = None if sel in (Select.BLANK, _SIN_CLIENTE) else str(sel)
        self._run_calculate(valor, client_slug, costo)

    @work(thread=True, exclusive=True)
    def _run_calculate(self, valor: str, client_slug: str | None, costo: str) -> None:
        from honorarios.services.billing import prepare_breakdown

        try:
            prepared = prepare_breakdown(valor, client_slug, cost_total=Decimal(costo))
        except Exception as e:
            self.app.call_from_thread(self._set_error, f"Error al calcular: {e}")
            return
        self.app.call_from_thread(self._show_result, prepared)

    def _show_result(self, prepared: PreparedBreakdown) -> None:
        from honorarios.utils.formatters import format_cop, format_pct, format_per_mille

        b = prepared.breakdown
        s = prepared.summary
        table = self.query_one("#breakdown-table", DataTable)
        table.clear(columns=True)
        table.add_columns("Concepto", "Valor")
        table.add_row("[bold]Cliente paga[/bold]", "")
        table.add_row("  Valor bruto", format_cop(b.valor_bruto))
        if b.has_iva:
            table.add_row(f"  IVA {format_pct(b.iva_rate)}", format_cop(b.iva))
        table.add_row("  Total", format_cop(b.total_cliente_paga))
        table.add_row("[bold]Te retienen[/bold]", "")
        if b.has_retenciones:
            table.add_row(f"  Retefuente {format_pct(b.retefuente_rate)}", f"-{format_cop(b.retefuente)}")
            table.add_row(f"  ReteICA {format_per_mille(b.reteica_rate)}", f"-{format_cop(b.reteica)}")
            if b.reteiva:
                table.add_row(
                    f"  ReteIVA {format_pct(b.reteiva_rate)} del IVA", f"-{format_cop(b.reteiva)}"
                )
            table.add_row("  Total retenciones", f"-{format_cop(b.total_retenciones)}")
        else:
            table.add_row("  Este cliente no practica retenciones", "")
        table.add_row("[bold]Te consignan[/bold]", f"[bold]{format_cop(b.neto_recibido)}[/bold]")
        table.add_row("  Seguridad social (11.4%)", f"-{format_cop(s.seguridad_social)}")
        if s.costo_total:
            table.add_row("  Costos", f"-{format_cop(s.costo_total)}")
        table.add_row("[bold]Ganancia real[/bold]", format_cop(s.ganancia_real))
        table.add_row("  Margen real neto", format_pct(s.margen_real_neto_pct))

        lines: list[str] = []
        for alert in prepared.alerts:
            style = _ALERT_STYLES.get(alert.tipo, "")
            lines.append(f"[{style}]{alert.mensaje}[/{style}]")
            if alert.detalle:
                lines.append(f"  {alert.detalle}")
        if b.is_estimated:
            lines.append("[yellow]Cálculo estimado:[/yellow]")
            lines.extend(f"  {r}" for r in prepared.estimation_reasons)
        self.query_one("#alerts", Static).update("\n".join(lines))

        self.query_one("#result-container").display = True

    def _set_error(self, msg: str) -> None:
        self.query_one("#error-label", Label).update(msg)

    def action_go_back(self) -> None:
        self.app.pop_screen()
