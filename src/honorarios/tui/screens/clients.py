from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Label, Select, Static

from honorarios.models.client import ClientProfile
from honorarios.models.profile import DEFAULT_FISCAL_PROFILE, FiscalProfile
from honorarios.tui.options import REGIMEN_OPTIONS, SI_NO_OPTIONS, TIPO_PERSONA_OPTIONS

# (widget_id, key, label, options or None for a text input, default)
_FIELDS: tuple[tuple[str, str, str, tuple[tuple[str, str], ...] | None, str], ...] = (
    ("client-slug", "slug", "Identificador", None, ""),
    ("client-nombre", "nombre", "Nombre o razón social", None, ""),
    ("client-nit", "nit", "NIT", None, ""),
    ("client-tipo", "tipo_persona", "Tipo de persona", TIPO_PERSONA_OPTIONS, "juridica"),
    ("client-agente", "agente_retenedor", "¿Agente retenedor?", SI_NO_OPTIONS, "si"),
    ("client-gran", "gran_contribuyente", "¿Gran contribuyente?", SI_NO_OPTIONS, "no"),
    ("client-regimen", "regimen", "Régimen", REGIMEN_OPTIONS, "ordinario"),
)

_PLACEHOLDERS = {"slug": "acme", "nombre": "ACME S.A.S.", "nit": "800197268-4"}

_BOOL_KEYS = frozenset({"agente_retenedor", "gran_contribuyente"})


def _profile_from_values(values: dict[str, str]) -> ClientProfile:
    return ClientProfile(
        tipo_persona=values["tipo_persona"],
        agente_retenedor=values["agente_retenedor"] == "si",
        gran_contribuyente=values["gran_contribuyente"] == "si",
        regimen=values["regimen"],
    )


class ClientsScreen(ModalScreen):
    """Client list, and the add/edit form for one client (two phases in one modal)."""

    BINDINGS = [
        Binding("escape", "go_back", "Volver"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._phase = "list"
        self._editing_slug: str | None = None
        self._pending_delete: str | None = None
        self._issuer: FiscalProfile = DEFAULT_FISCAL_PROFILE

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Clientes", id="header-bar")
                yield Button("✕", id="btn-modal-close")

            with Container(id="clients-list-container"):
                yield DataTable(id="clients-table", cursor_type="row")
                with Horizontal(classes="button-bar"):
                    yield Button("✕ Cerrar", id="btn-clients-close", variant="error")
                    yield Button("▶ Editar", id="btn-edit-cliente", tooltip="Editar cliente seleccionado")
                    yield Button("✖ Eliminar", id="btn-delete-cliente", variant="warning")
                    yield Button("▶ Nuevo cliente", id="btn-nuevo-cliente", variant="primary")

            with Container(id="client-form-container"):
                for widget_id, key, label, options, default in _FIELDS:
                    yield Label(label, classes="form-label")
                    if options is None:
                        yield Input(placeholder=_PLACEHOLDERS[key], id=widget_id)
                    else:
                        yield Select(options, id=widget_id, value=default, allow_blank=False)
                yield Static("", id="client-withholding-hint")
                yield Label("", id="client-error-label")
                with Horizontal(classes="button-bar"):
                    yield Button("← Volver", id="btn-form-back", variant="error")
                    yield Button("✖ Eliminar", id="btn-form-delete", variant="warning")
                    yield Button("▶ Guardar", id="btn-guardar-cliente", variant="success")

    def on_mount(self) -> None:
        self._show_phase("list")
        self._load_issuer()
        self._load_clients()
        self.query_one("#clients-table", DataTable).focus()

    def _show_phase(self, phase: str) -> None:
        self._phase = phase
        self.query_one("#clients-list-container").display = phase == "list"
        self.query_one("#client-form-container").display = phase == "form"

    # --- Loading (threaded) ---

    @work(thread=True)
    def _load_issuer(self) -> None:
        from honorarios.config import load_fiscal_profile
        from honorarios.models.profile import resolve_fiscal_profile

        try:
            issuer, _ = resolve_fiscal_profile(load_fiscal_profile())
        except Exception:
            return
        self._issuer = issuer

    @work(thread=True)
    def _load_clients(self) -> None:
        from honorarios.config import list_clients, load_client
        from honorarios.models.client import Client

        rows: list[tuple[str, ...]] = []
        try:
            slugs = list_clients()
        except OSError:
            slugs = []
        for slug in slugs:
            try:
                client = Client.from_dict(load_client(slug), slug=slug)
            except Exception:
                rows.append((slug, "error", "", "", ""))
                continue
            p = client.perfil
            rows.append((slug, client.nombre, client.nit, p.tipo_persona, "sí" if p.agente_retenedor else "no"))
        self.app.call_from_thread(self._populate_table, rows)

    def _populate_table(self, rows: list[tuple[str, ...]]) -> None:
        table = self.query_one("#clients-table", DataTable)
        table.clear(columns=True)
        table.add_columns("Id", "Nombre", "NIT", "Persona", "Retiene")
        for row in rows:
            table.add_row(*row, key=row[0])

    # --- Events ---

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-clients-close" | "btn-modal-close":
                self.app.pop_screen()
            case "btn-edit-cliente":
                slug = self._selected_slug()
                if slug:
                    self._open_form(slug)
            case "btn-nuevo-cliente":
                self._open_form(None)
            case "btn-form-back":
                self._show_phase("list")
            case "btn-guardar-cliente":
                self._do_save()
            case "btn-delete-cliente":
                slug = self._selected_slug()
                if slug:
                    self._request_delete(slug)
            case "btn-form-delete":
                if self._editing_slug:
                    self._request_delete(self._editing_slug)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._open_form(str(event.row_key.value))

    def on_select_changed(self, event: Select.Changed) -> None:
        if self._phase == "form":
            self._update_hint()

    def _selected_slug(self) -> str | None:
        table = self.query_one("#clients-table", DataTable)
        if table.row_count == 0:
            self.notify("Ningún cliente seleccionado", severity="warning", timeout=3)
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return str(row_key.value)

    # --- Form ---

    def _open_form(self, slug: str | None) -> None:
        """Open the form empty for a new client, or filled from config/clients/<slug>.yaml."""
        self._editing_slug = slug
        self._pending_delete = None
        self._fill_form({"slug": slug or ""})
        self.query_one("#client-slug", Input).disabled = slug is not None
        self.query_one("#btn-form-delete", Button).display = slug is not None
        if slug is None:
            self._show_phase("form")
            self.query_one("#client-slug", Input).focus()
        else:
            self._load_client_into_form(slug)

    @work(thread=True)
    def _load_client_into_form(self, slug: str) -> None:
        from honorarios.config import load_client
        from honorarios.models.client import Client

        try:
            data = Client.from_dict(load_client(slug), slug=slug).to_dict()
        except Exception as e:
            self.app.call_from_thread(self._set_error, f"No se pudo leer '{slug}': {e}")
            data = {}
        data["slug"] = slug
        self.app.call_from_thread(self._show_loaded, data)

    def _show_loaded(self, data: dict) -> None:
        self._fill_form(data)
        self._show_phase("form")
        self.query_one("#client-nombre", Input).focus()

    def _fill_form(self, data: dict) -> None:
        for widget_id, key, _, options, default in _FIELDS:
            value = data.get(key, default)
            if key in _BOOL_KEYS and isinstance(value, bool):
                value = "si" if value else "no"
            if options is None:
                self.query_one(f"#{widget_id}", Input).value = str(value)
            else:
                self.query_one(f"#{widget_id}", Select).value = value
        self._set_error("")
        self._update_hint()

    def _read_form_values(self) -> dict[str, str]:
        values: dict[str, str] = {}
        for widget_id, key, _, options, _ in _FIELDS:
            if options is None:
                values[key] = self.query_one(f"#{widget_id}", Input).value.strip()
            else:
                values[key] = str(self.query_one(f"#{widget_id}", Select).value)
        return values

    def _update_hint(self) -> None:
        from honorarios.services.tax_engine import client_withholds

        profile = _profile_from_values(self._read_form_values())
        if client_withholds(self._issuer, profile):
            text = "Este cliente te practica retefuente, reteICA y reteIVA."
        else:
            text = "Este cliente no te practica retenciones."
        self.query_one("#client-withholding-hint", Static).update(text)

    def _set_error(self, text: str) -> None:
        self.query_one("#client-error-label", Label).update(text)

    def _do_save(self) -> None:
        from honorarios.config import list_clients
        from honorarios.utils.validators import validate_nit, validate_slug

        self._set_error("")
        v = self._read_form_values()
        errors: list[str] = []
        nit = ""
        try:
            validate_slug(v["slug"])
        except ValueError as e:
            errors.append(str(e))
        if not v["nombre"]:
            errors.append("Nombre obligatorio")
        try:
            nit = validate_nit(v["nit"])
        except ValueError as e:
            errors.append(str(e))
        if self._editing_slug is None and not errors and v["slug"] in list_clients():
            errors.append("El identificador ya existe")
        if errors:
            self._set_error(" | ".join(errors))
            return

        profile = _profile_from_values(v)
        data = {
            "nombre": v["nombre"],
            "nit": nit,
            "tipo_persona": profile.tipo_persona,
            "agente_retenedor": profile.agente_retenedor,
            "gran_contribuyente": profile.gran_contribuyente,
            "regimen": profile.regimen,
        }
        self._run_save(v["slug"], data)

    @work(thread=True)
    def _run_save(self, slug: str, data: dict) -> None:
        from honorarios.config import save_client

        try:
            save_client(slug, data)
        except OSError as e:
            self.app.call_from_thread(self._set_error, f"Error: {e}")
            return
        self.app.call_from_thread(self._after_change, f"Cliente '{slug}' guardado")

    def _after_change(self, message: str) -> None:
        self._pending_delete = None
        self.notify(message, timeout=3)
        self._show_phase("list")
        self._load_clients()

    # --- Delete ---

    def _request_delete(self, slug: str) -> None:
        """The first press arms the deletion; pressing again on the same client deletes it."""
        if self._pending_delete != slug:
            self._pending_delete = slug
            self.notify(
                f"Presiona de nuevo para eliminar '{slug}'",
                severity="warning",
                timeout=4,
            )
            return
        self._run_delete(slug)

    @work(thread=True)
    def _run_delete(self, slug: str) -> None:
        from honorarios.config import delete_client

        try:
            delete_client(slug)
        except OSError as e:
            self._pending_delete = None
            self.app.call_from_thread(
                self.notify, f"Error al eliminar: {e}", severity="error", timeout=5
            )
            return
        self.app.call_from_thread(self._after_change, f"Cliente '{slug}' eliminado")

    def action_go_back(self) -> None:
        self._pending_delete = None
        if self._phase == "form":
            self._show_phase("list")
        else:
            self.app.pop_screen()
