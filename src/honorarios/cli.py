from __future__ import annotations

import logging
import sys
from importlib.resources import files

_TEMPLATES = [
    "perfil_fiscal.yaml.example",
    "clients/acme.yaml.example",
    "fiscal_params/2026.yaml.example",
]


def _setup_logging(to_file: bool = False) -> None:
    from honorarios.config import get_data_dir, get_log_level

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    if to_file:
        # The TUI owns the terminal; stderr output would corrupt the screen
        data_dir = get_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=get_log_level(), format=fmt, filename=data_dir / "honorarios.log"
        )
    else:
        logging.basicConfig(level=get_log_level(), format=fmt)


def _init_config() -> None:
    """Copy bundled config templates to the user's config/data directories."""
    from honorarios.config import get_config_dir, get_data_dir

    config_dir = get_config_dir()
    data_dir = get_data_dir()
    templates = files("honorarios") / "templates"

    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "clients").mkdir(parents=True, exist_ok=True)
    (config_dir / "fiscal_params").mkdir(parents=True, exist_ok=True)
    data_dir.mkdir(parents=True, exist_ok=True)

    copied = 0
    for rel in _TEMPLATES:
        dest = config_dir / rel
        if dest.exists():
            print(f"  ya existe: {dest}")
            continue
        src = templates / rel
        with src.open("rb") as f:
            dest.write_bytes(f.read())
        print(f"  creado: {dest}")
        copied += 1

    print()
    print(f"Configuración: {config_dir}")
    print(f"Datos:         {data_dir}")

    print()
    if copied:
        print("Próximos pasos:")
        print(f"  1. cp {config_dir / 'perfil_fiscal.yaml.example'} {config_dir / 'perfil_fiscal.yaml'}")
        print("  2. Edita perfil_fiscal.yaml con tu situación tributaria")
        print("  3. Ejecuta: honorarios")
    else:
        print("Ningún archivo nuevo creado (todos ya existían).")


def _print_breakdown(valor: str, client_slug: str | None) -> int:
    from honorarios.services.billing import prepare_breakdown
    from honorarios.utils.formatters import (
        FISCAL_DISCLAIMER,
        format_cop,
        format_pct,
        format_per_mille,
    )
    from honorarios.utils.validators import validate_monetary

    try:
        prepared = prepare_breakdown(validate_monetary(valor), client_slug)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FileNotFoundError:
        print(f"Error: cliente no encontrado: {client_slug}", file=sys.stderr)
        return 1

    b = prepared.breakdown
    rows = [
        ("Valor bruto", format_cop(b.valor_bruto)),
        (f"IVA ({format_pct(b.iva_rate)})", format_cop(b.iva)),
        ("Total cliente paga", format_cop(b.total_cliente_paga)),
        (f"Retefuente ({format_pct(b.retefuente_rate)})", f"-{format_cop(b.retefuente)}"),
        (f"ReteICA ({format_per_mille(b.reteica_rate)})", f"-{format_cop(b.reteica)}"),
        (f"ReteIVA ({format_pct(b.reteiva_rate)} del IVA)", f"-{format_cop(b.reteiva)}"),
        ("Total retenciones", f"-{format_cop(b.total_retenciones)}"),
        ("Te consignan", format_cop(b.neto_recibido)),
    ]
    if prepared.client is not None:
        print(f"Cliente: {prepared.client.nombre} ({prepared.client.nit})")
    width = max(len(label) for label, _ in rows)
    for label, value in rows:
        print(f"  {label:<{width}}  {value:>15}")
    if not b.has_retenciones:
        print("  Este cliente no practica retenciones.")

    for alert in prepared.alerts:
        print(f"\n[{alert.tipo}] {alert.mensaje}")
        if alert.detalle:
            print(f"  {alert.detalle}")

    if b.is_estimated:
        print("\nCálculo estimado:")
        for reason in prepared.estimation_reasons:
            print(f"  - {reason}")
    print(f"\n{FISCAL_DISCLAIMER}")
    return 0


def _preflight() -> bool:
    """Verify minimal config before launching the TUI.

    Auto-creates the data directory. Returns False with a helpful
    message when the config directory or perfil_fiscal.yaml is missing.
    """
    from honorarios.config import get_config_dir, get_data_dir

    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)

    config_dir = get_config_dir()
    if not config_dir.is_dir():
        print(f"Error: directorio de configuración no encontrado: {config_dir}")
        print("Ejecuta 'honorarios init' para crear los archivos de ejemplo.")
        return False
    if not (config_dir / "perfil_fiscal.yaml").is_file():
        print(f"Error: perfil_fiscal.yaml no encontrado en {config_dir}")
        print("Ejecuta 'honorarios init' y configura tu perfil fiscal.")
        return False
    return True


def main() -> None:
    """Entry point for the honorarios CLI/TUI."""
    args = sys.argv[1:]
    if args and args[0] == "init":
        _init_config()
        return

    if args and args[0] == "calcular":
        if len(args) not in (2, 3):
            print("Uso: honorarios calcular <valor> [cliente]", file=sys.stderr)
            sys.exit(2)
        _setup_logging()
        sys.exit(_print_breakdown(args[1], args[2] if len(args) == 3 else None))

    if not _preflight():
        sys.exit(1)

    _setup_logging(to_file=True)

    from honorarios.tui.app import HonorariosApp

    app = HonorariosApp()
    app.run()


if __name__ == "__main__":
    main()
