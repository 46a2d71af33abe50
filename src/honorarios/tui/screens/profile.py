from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, Static

from honorarios.tui.options import (
    CIUDAD_OPTIONS,
    NO_SE,
    REGIMEN_OPTIONS,
    SI_NO_OPTIONS,
    TIPO_PERSONA_OPTIONS,
    with_no_se,
)

# (widget_id, label, yaml key, options, default). Boolean questions map "si"/"no".
_SELECT_FIELDS: tuple[tuple[str, str, str, tuple[tuple[str, str], ...], str], ...] = (
    ("profile-tipo", "Tipo de persona", "tipo_persona", with_no_se(TIPO_PERSONA_OPTIONS), NO_SE),
    ("profile-regimen", "Régimen", "regimen", with_no_se(REGIMEN_OPTIONS), NO_SE),
    ("profile-declarante", "¿Declarante de renta?", "declarante", SI_NO_OPTIONS, "si"),
    ("profile-iva", "¿Responsable de IVA?", "responsable_iva", with_no_se(SI_NO_OPTIONS), NO_SE),
    ("profile-autorretenedor", "¿Autorretenedor?", "autorretenedor", SI_NO_OPTIONS, "no"),
    ("profile-ciudad", "Ciudad (ICA)", "ciudad_ica", with_no_se(CIUDAD_OPTIONS), NO_SE),
)

_BOOL_KEYS = frozenset({"declarante", "responsable_iva", "autorretenedor"})


def _to_select(key: str, value: object) -> str:
    if value is None:
        return NO_SE
    if key in _BOOL_KEYS:
        return "si" if value is True or str(value).lower() in ("si", "sí", "true") else "no"
    return str(value)


def _from_select(key: str, value: str) -> object:
    if value == NO_SE:
        return None
    if key in _BOOL_KEYS:
        return value == "si"
    return value


class ProfileScreen(ModalScreen[bool]):
    """Edit the issuer fiscal profile. "No sé" answers fall back to conservative defaults."""

    BINDINGS = [
        Binding("escape", "go_back", "Volver"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Perfil fiscal", id="header-bar")
                yield Button("✕", id="btn-modal-close")

            with Container(id="profile-form"):
                for widget_id, label, _, options, default in _SELECT_FIELDS:
                    yield Label(label, classes="form-label")
                    yield Select(options, id=widget_id, allow_blank=False, value=default)
                yield Label("Tarifa ICA por mil (vacío = la de la ciudad)", classes="form-label")
                yield Input(placeholder="9.66", id="profile-tarifa")
                yield Label("", id="profile-error-label")
                with Horizontal(classes="button-bar"):
                    yield Button("✕ Cerrar", id="btn-profile-cerrar")
                    yield Button("▶ Guardar", id="btn-profile-guardar", variant="success")

    def on_mount(self) -> None:
        self._load_profile()

    @work(thread=True)
    def _load_profile(self) -> None:
        try:
            from honorarios.config import load_fiscal_profile

            data = load_fiscal_profile()
        except Exception:
            data = {}
        self.app.call_from_thread(self._fill_form, data)

    def _fill_form(self, data: dict) -> None:
        for widget_id, _, key, options, default in _SELECT_FIELDS:
            value = _to_select(key, data[key]) if key in data else default
            if value not in {v for _, v in options}:
                value = default
            self.query_one(f"#{widget_id}", Select).value = value
        tarifa = data.get("tarifa_ica")
        self.query_one("#profile-tarifa", Input).value = "" if tarifa is None else str(tarifa)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-profile-guardar":
                self._do_save()
            case "btn-profile-cerrar" | "btn-modal-close":
                self.dismiss(False)

    def _do_save(self) -> None:
        from honorarios.utils.validators import validate_per_mille

        error_label = self.query_one("#profile-error-label", Label)
        error_label.update("")

        data: dict[str, object] = {}
        for widget_id, _, key, _, _ in _SELECT_FIELDS:
            data[key] = _from_select(key, str(self.query_one(f"#{widget_id}", Select).value))

        tarifa = self.query_one("#profile-tarifa", Input).value.strip()
        if tarifa:
            try:
                data["tarifa_ica"] = float(validate_per_mille(tarifa))
            except ValueError as e:
                error_label.update(str(e))
                return
        self._run_save(data)

    @work(thread=True)
    def _run_save(self, data: dict) -> None:
        from honorarios.config import save_fiscal_profile
        from honorarios.models.profile import resolve_fiscal_profile

        try:
            _, estimated = resolve_fiscal_profile(data)
            save_fiscal_profile(data)
        except Exception as e:
            self.app.call_from_thread(self._on_save_error, str(e))
            return
        self.app.call_from_thread(self._on_save_done, estimated)

    def _on_save_done(self, estimated: bool) -> None:
        if estimated:
            self.notify(
                "Perfil guardado. Hay respuestas pendientes: los cálculos serán estimados.",
                severity="warning",
                timeout=4,
            )
        else:
            self.notify("Perfil fiscal guardado", timeout=3)
        self.dismiss(True)

    def _on_save_error(self, msg: str) -> None:
        self.query_one("#profile-error-label", Label).update(f"Error: {msg}")

    def action_go_back(self) -> None:
        self.dismiss(False)
