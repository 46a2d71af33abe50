from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.screen import Screen
from textual.widgets import Button, DataTable, Footer, Label, Select, Static

from honorarios.models.quote import ACEPTADA, BORRADOR, ENVIADA, RECHAZADA, VENCIDA, Quote
from honorarios.services import quote_lifecycle as lifecycle
from honorarios.tui.options import ESTADO_FILTER_OPTIONS

# Keyboard shortcut shown in the table for each row action
_ACTION_KEYS = {
    lifecycle.EDIT: "e",
    lifecycle.SEND: "s",
    lifecycle.ACCEPT: "a",
    lifecycle.REJECT: "r",
    lifecycle.REOPEN: "o",
    lifecycle.DUPLICATE: "d",
}

_STATUS_STYLES = {
    BORRADOR: "yellow",
    ENVIADA: "cyan",
    ACEPTADA: "green",
    RECHAZADA: "red",
    VENCIDA: "dim",
}


class DashboardScreen(Screen):
    """Main dashboard: quotes of every opportunity and their lifecycle actions."""

    BINDINGS = [
        # Row actions, hidden from footer (have buttons above table)
        Binding("n", "new_quote", "Nueva", show=False),
        Binding("e", "edit_quote", "Editar", show=False),
        Binding("s", "send_quote", "Enviar", show=False),
        Binding("a", "accept_quote", "Aceptar", show=False),
        Binding("r", "reject_quote", "Rechazar", show=False),
        Binding("o", "reopen_quote", "Reabrir", show=False),
        Binding("d", "duplicate_quote", "Duplicar", show=False),
        # Generic actions, shown in footer
        Binding("c", "calculator", "Calcular"),
        Binding("x", "expire", "Vencer"),
        Binding("p", "profile", "Perfil"),
        Binding("l", "clients", "Clientes"),
        Binding("v", "validate", "Validar"),
        Binding("f", "focus_filter", "Filtrar"),
        Binding("h", "help", "Ayuda"),
        Binding("q", "quit", "Salir"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._all_quotes: list[Quote] = []

    def compose(self) -> ComposeResult:
        with Horizontal(id="top-bar"):
            yield Static("Honorarios", id="app-title")
            yield Static("", id="year-badge")

        with Horizontal(id="info-bar"):
            with Vertical(id="card-profile", classes="info-card"):
                yield Label("Perfil fiscal", classes="card-title")
                yield Label("…", id="profile-info", classes="card-value")
            with Vertical(id="card-params", classes="info-card"):
                yield Label("Parámetros", classes="card-title")
                yield Label("…", id="params-info", classes="card-value")
            with Vertical(id="card-seq", classes="info-card"):
                yield Label("Consecutivo", classes="card-title")
                yield Label("…", id="seq-info", classes="card-value")

        with Horizontal(id="filter-bar"):
            yield Static("Cotizaciones", id="section-title")
            yield Select(
                ESTADO_FILTER_OPTIONS,
                value="todas",
                allow_blank=False,
                id="filter-estado",
                tooltip="Filtrar por estado",
            )

        with Horizontal(id="action-bar"):
            yield Button("+ Nueva", id="btn-new", variant="primary", tooltip="Nueva cotización (n)")
            yield Button("✎ Editar", id="btn-edit", tooltip="Editar borrador (e)")
            yield Button("↑ Enviar", id="btn-send", tooltip="Enviar al cliente (s)")
            yield Button(
                "✓ Aceptar", id="btn-accept", variant="success", tooltip="Marcar aceptada (a)"
            )
            yield Button("✗ Rechazar", id="btn-reject", tooltip="Marcar rechazada (r)")
            yield Button("↺ Reabrir", id="btn-reopen", tooltip="Reabrir rechazada (o)")
            yield Button("⎘ Duplicar", id="btn-duplicate", tooltip="Duplicar como borrador (d)")

        yield DataTable(id="quotes-table", cursor_type="row")

        yield Static(
            "No hay cotizaciones.\n"
            "Presiona [bold]n[/bold] para crear una "
            "o [bold]c[/bold] para calcular retenciones.",
            id="empty-state",
        )

        yield Footer()

    def on_mount(self) -> None:
        self._load_profile()
        self._load_params()
        self._load_sequence()
        self._refresh_quotes()
        self.query_one("#quotes-table", DataTable).focus()

    def on_key(self, event: Key) -> None:
        table = self.query_one("#quotes-table", DataTable)
        match event.key:
            case "j":
                table.action_cursor_down()
            case "k":
                table.action_cursor_up()
            case "enter":
                self._open_selected()
            case _:
                return
        event.prevent_default()
        event.stop()

    # --- Data loading (threaded) ---

    @work(thread=True)
    def _load_profile(self) -> None:
        try:
            from honorarios.config import load_fiscal_profile
            from honorarios.models.profile import resolve_fiscal_profile
            from honorarios.utils.formatters import format_per_mille

            profile, estimated = resolve_fiscal_profile(load_fiscal_profile())
            text = (
                f"{profile.tipo_persona} · {profile.regimen}\n"
                f"ICA {format_per_mille(profile.tarifa_ica)} {profile.ciudad_ica}"
            )
            if estimated:
                text += " [yellow](estimado)[/yellow]"
        except FileNotFoundError:
            text = "[yellow]no configurado[/yellow]"
        except Exception as e:
            text = f"error - {e}"
        self.app.call_from_thread(self._update_label, "profile-info", text)

    @work(thread=True)
    def _load_params(self) -> None:
        try:
            from honorarios.config import get_fiscal_year, load_fiscal_params
            from honorarios.models.params import DEFAULT_PARAMS, FiscalParams
            from honorarios.utils.formatters import format_cop

            year = get_fiscal_year()
            data = load_fiscal_params(year)
            params = FiscalParams.from_dict(data) if data else DEFAULT_PARAMS
            text = f"UVT {format_cop(params.uvt)}\nTope honorarios {format_cop(params.tope_honorarios)}"
            badge = f"Año fiscal {year}"
        except Exception as e:
            text = f"error - {e}"
            badge = ""
        self.app.call_from_thread(self._update_label, "params-info", text)
        self.app.call_from_thread(self._update_static, "year-badge", badge)

    @work(thread=True)
    def _load_sequence(self) -> None:
        try:
            from honorarios.utils.sequence import peek_next_quote_number

            text = f"Próximo: {peek_next_quote_number()}"
        except Exception as e:
            text = f"error - {e}"
        self.app.call_from_thread(self._update_label, "seq-info", text)

    @work(thread=True)
    def _refresh_quotes(self) -> None:
        from honorarios.utils.quote_store import expire_overdue, list_quotes

        try:
            expired = expire_overdue()
            quotes = list_quotes()
        except Exception as e:
            self.app.call_from_thread(
                self.notify, f"Error al leer cotizaciones: {e}", severity="error", timeout=5
            )
            return
        self.app.call_from_thread(self._set_quotes, quotes, len(expired))

    def _set_quotes(self, quotes: list[Quote], expired: int) -> None:
        self._all_quotes = quotes
        self._apply_filter()
        if expired:
            self.notify(f"{expired} cotización(es) vencida(s)", severity="warning", timeout=4)

    # --- Filtering ---

    def _apply_filter(self) -> None:
        estado = self.query_one("#filter-estado", Select).value
        filtered = self._all_quotes
        if estado != "todas":
            filtered = [q for q in filtered if q.estado == estado]
        self._populate_table(filtered)

    def _populate_table(self, quotes: list[Quote]) -> None:
        from honorarios.utils.formatters import format_cop

        table = self.query_one("#quotes-table", DataTable)
        table.clear(columns=True)
        table.add_columns("Número", "Oportunidad", "Estado", "Valor", "Válida hasta", "Acciones")

        for q in quotes:
            style = _STATUS_STYLES.get(q.estado, "")
            label = lifecycle.STATUS_LABELS.get(q.estado, q.estado)
            estado = f"[{style}]{label}[/{style}]" if style else label
            validez = q.fecha_validez or ""
            if q.estado == ENVIADA and lifecycle.is_expired(q.fecha_validez):
                validez = f"[red]{validez}[/red]"
            keys = " ".join(
                _ACTION_KEYS[a] for a in lifecycle.available_actions(q.estado) if a in _ACTION_KEYS
            )
            table.add_row(
                q.consecutivo,
                q.oportunidad_id,
                estado,
                format_cop(q.valor_total),
                validez,
                keys,
                key=q.id,
            )

        has_rows = table.row_count > 0
        table.display = has_rows
        self.query_one("#empty-state", Static).display = not has_rows

    # --- Event handlers ---

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "filter-estado":
            self._apply_filter()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-new":
                self.action_new_quote()
            case "btn-edit":
                self.action_edit_quote()
            case "btn-send":
                self.action_send_quote()
            case "btn-accept":
                self.action_accept_quote()
            case "btn-reject":
                self.action_reject_quote()
            case "btn-reopen":
                self.action_reopen_quote()
            case "btn-duplicate":
                self.action_duplicate_quote()

    def _selected_quote(self) -> Quote | None:
        """Return the quote of the currently selected row, or None if empty."""
        table = self.query_one("#quotes-table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return next((q for q in self._all_quotes if q.id == row_key.value), None)

    def _open_selected(self) -> None:
        quote = self._selected_quote()
        if quote is None:
            return
        from honorarios.tui.screens.breakdown import BreakdownScreen

        self.app.push_screen(BreakdownScreen(valor=str(quote.valor_total)))

    # --- Helpers ---

    def _update_label(self, label_id: str, text: str) -> None:
        self.query_one(f"#{label_id}", Label).update(text)

    def _update_static(self, static_id: str, text: str) -> None:
        self.query_one(f"#{static_id}", Static).update(text)

    def _reload(self, changed: bool | None = True) -> None:
        if changed:
            self._load_sequence()
            self._refresh_quotes()

    # --- Lifecycle actions ---

    def _require_action(self, action: str) -> Quote | None:
        """Return the selected quote if *action* is offered for its status."""
        quote = self._selected_quote()
        if quote is None:
            self.notify("Ninguna cotización seleccionada", severity="warning", timeout=3)
            return None
        if action not in lifecycle.available_actions(quote.estado):
            label = lifecycle.STATUS_LABELS.get(quote.estado, quote.estado)
            self.notify(
                f"Acción no disponible para una cotización {label.lower()}",
                severity="warning",
                timeout=3,
            )
            return None
        return quote

    def _transition(self, action: str) -> None:
        quote = self._require_action(action)
        if quote is not None:
            self._run_action(quote.id, action)

    @work(thread=True)
    def _run_action(self, quote_id: str, action: str) -> None:
        from honorarios.services.exceptions import QuoteNotFoundError, QuoteTransitionError
        from honorarios.utils.quote_store import apply_action

        try:
            quote = apply_action(quote_id, action)
        except QuoteTransitionError as e:
            self.app.call_from_thread(self.notify, e.reason, severity="warning", timeout=5)
            return
        except QuoteNotFoundError as e:
            self.app.call_from_thread(self.notify, str(e), severity="error", timeout=5)
            return
        self.app.call_from_thread(self._on_action_done, quote)

    def _on_action_done(self, quote: Quote) -> None:
        label = lifecycle.STATUS_LABELS.get(quote.estado, quote.estado)
        msg = f"{quote.consecutivo}: {label}"
        if quote.estado == ENVIADA and quote.fecha_validez:
            msg += f" (válida hasta {quote.fecha_validez})"
        self.notify(msg, timeout=3)
        self._refresh_quotes()

    def action_new_quote(self) -> None:
        from honorarios.tui.screens.quote_form import QuoteFormScreen

        self.app.push_screen(QuoteFormScreen(), callback=self._reload)

    def action_edit_quote(self) -> None:
        quote = self._require_action(lifecycle.EDIT)
        if quote is None:
            return
        from honorarios.tui.screens.quote_form import QuoteFormScreen

        self.app.push_screen(QuoteFormScreen(quote=quote), callback=self._reload)

    def action_send_quote(self) -> None:
        self._transition(lifecycle.SEND)

    def action_accept_quote(self) -> None:
        quote = self._require_action(lifecycle.ACCEPT)
        if quote is None:
            return
        from honorarios.tui.screens.confirm import ConfirmScreen

        self.app.push_screen(
            ConfirmScreen(quote, lifecycle.ACCEPT),
            callback=lambda ok: self._run_action(quote.id, lifecycle.ACCEPT) if ok else None,
        )

    def action_reject_quote(self) -> None:
        self._transition(lifecycle.REJECT)

    def action_reopen_quote(self) -> None:
        self._transition(lifecycle.REOPEN)

    def action_duplicate_quote(self) -> None:
        quote = self._require_action(lifecycle.DUPLICATE)
        if quote is not None:
            self._run_duplicate(quote.id)

    @work(thread=True)
    def _run_duplicate(self, quote_id: str) -> None:
        from honorarios.utils.quote_store import duplicate_quote

        try:
            copy = duplicate_quote(quote_id)
        except Exception as e:
            self.app.call_from_thread(self.notify, f"Error al duplicar: {e}", severity="error")
            return
        self.app.call_from_thread(self.notify, f"Borrador {copy.consecutivo} creado", timeout=3)
        self.app.call_from_thread(self._reload)

    def action_expire(self) -> None:
        self._run_expire()

    @work(thread=True)
    def _run_expire(self) -> None:
        from honorarios.utils.quote_store import expire_overdue

        expired = expire_overdue()
        if expired:
            self.app.call_from_thread(
                self.notify, f"{len(expired)} cotización(es) vencida(s)", timeout=3
            )
            self.app.call_from_thread(self._reload)
        else:
            self.app.call_from_thread(self.notify, "Ninguna cotización vencida", timeout=3)

    # --- Other screens ---

    def action_calculator(self) -> None:
        from honorarios.tui.screens.breakdown import BreakdownScreen

        quote = self._selected_quote()
        self.app.push_screen(BreakdownScreen(valor=str(quote.valor_total) if quote else ""))

    def action_profile(self) -> None:
        from honorarios.tui.screens.profile import ProfileScreen

        self.app.push_screen(ProfileScreen(), callback=self._on_profile_closed)

    def _on_profile_closed(self, saved: bool | None) -> None:
        if saved:
            self._load_profile()

    def action_clients(self) -> None:
        from honorarios.tui.screens.clients import ClientsScreen

        self.app.push_screen(ClientsScreen())

    def action_validate(self) -> None:
        from honorarios.tui.screens.validate import ValidateScreen

        self.app.push_screen(ValidateScreen())

    def action_help(self) -> None:
        from honorarios.tui.screens.help import HelpScreen

        self.app.push_screen(HelpScreen())

    def action_focus_filter(self) -> None:
        self.query_one("#filter-estado", Select).focus()

    def action_quit(self) -> None:
        self.app.exit()
