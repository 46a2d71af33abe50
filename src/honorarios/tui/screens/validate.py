from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, RichLog, Static


class ValidateScreen(ModalScreen):
    """Fiscal profile, parameter table, clients and local store checks."""

    BINDINGS = [
        Binding("escape", "go_back", "Volver"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Validar configuración", id="header-bar")
                yield Button("✕", id="btn-modal-close")
            yield RichLog(id="validation-output", wrap=True, markup=True)
            with Horizontal(classes="button-bar"):
                yield Button("✕ Cerrar", id="btn-volver", variant="error")

    def on_mount(self) -> None:
        self.notify("Validando configuración…", severity="information", timeout=2)
        self._run_validation()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-volver" | "btn-modal-close":
                self.app.pop_screen()

    @work(thread=True)
    def _run_validation(self) -> None:
        lines: list[str] = []

        # Fiscal profile
        try:
            from honorarios.config import load_fiscal_profile
            from honorarios.models.profile import resolve_fiscal_profile

            profile, estimated = resolve_fiscal_profile(load_fiscal_profile())
            lines.append(
                f"[green]OK[/green] Perfil fiscal: persona {profile.tipo_persona}, "
                f"régimen {profile.regimen}"
            )
            lines.append(f"   ICA: {profile.tarifa_ica}‰ ({profile.ciudad_ica})")
            if estimated:
                lines.append("[yellow]AVISO[/yellow] Perfil incompleto: los cálculos serán estimados")
        except FileNotFoundError:
            lines.append("[red]ERROR[/red] Perfil fiscal no configurado")
            lines.append("   Ejecuta 'honorarios init' y edita perfil_fiscal.yaml")
        except Exception as e:
            lines.append(f"[red]ERROR[/red] Perfil fiscal: {e}")

        # Parameter table
        try:
            from honorarios.config import DEFAULT_FISCAL_YEAR, get_fiscal_year, load_fiscal_params
            from honorarios.models.params import FiscalParams

            year = get_fiscal_year()
            data = load_fiscal_params(year)
            if data is not None:
                params = FiscalParams.from_dict(data)
                lines.append(f"[green]OK[/green] Parámetros {year}: UVT {params.uvt}")
            elif year == DEFAULT_FISCAL_YEAR:
                lines.append(f"[green]OK[/green] Parámetros {year}: valores incluidos")
            else:
                lines.append(
                    f"[yellow]AVISO[/yellow] Sin parámetros para {year}: "
                    f"se usan los de {DEFAULT_FISCAL_YEAR}"
                )
        except Exception as e:
            lines.append(f"[red]ERROR[/red] Parámetros fiscales: {e}")

        # Clients
        try:
            from honorarios.config import list_clients, load_client
            from honorarios.models.client import Client
            from honorarios.utils.validators import validate_nit

            clients = list_clients()
            if clients:
                for c in clients:
                    try:
                        client = Client.from_dict(load_client(c), slug=c)
                        validate_nit(client.nit)
                        lines.append(f"[green]OK[/green] Cliente: {c}")
                    except Exception as ce:
                        lines.append(f"[red]ERROR[/red] Cliente {c}: {ce}")
            else:
                lines.append("[yellow]AVISO[/yellow] Ningún cliente configurado")
        except Exception as e:
            lines.append(f"[red]ERROR[/red] Clientes: {e}")

        # Local store health
        try:
            from honorarios.utils.quote_store import check_store_health

            health = check_store_health()
            if health.store_ok:
                lines.append(f"[green]OK[/green] Cotizaciones: {health.quote_count}")
            else:
                lines.append("[red]ERROR[/red] Cotizaciones: archivo corrupto")
            for b in health.corrupt_backups:
                lines.append(f"[yellow]AVISO[/yellow] Respaldo encontrado: {b}")
                lines.append("   Recuperación: renombrar a cotizaciones.json y reiniciar")
            for opp in health.conflicting_opportunities:
                lines.append(f"[red]ERROR[/red] Oportunidad {opp}: más de una cotización enviada")
        except Exception as e:
            lines.append(f"[red]ERROR[/red] Cotizaciones: {e}")

        self.app.call_from_thread(self._display_lines, lines)

    def _display_lines(self, lines: list[str]) -> None:
        log = self.query_one("#validation-output", RichLog)
        for line in lines:
            log.write(line)
        if any("[red]" in line for line in lines):
            self.notify("Validación terminada con errores", severity="warning", timeout=3)
        else:
            self.notify("Validación terminada: todo OK", timeout=3)

    def action_go_back(self) -> None:
        self.app.pop_screen()
