from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

FISCAL_DISCLAIMER = (
    "Valores estimados con base en parámetros fiscales vigentes. "
    "Consulta tu contador para cálculos definitivos."
)


def format_cop(value: Decimal | int | str) -> str:
    """Format an amount as $ X.XXX.XXX (whole pesos, dot thousands separator)."""
    d = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if d < 0 else ""
    return f"{sign}$ {abs(d):,.0f}".replace(",", ".")


def format_pct(value: Decimal | int | str) -> str:
    return f"{Decimal(str(value)).normalize():f}%"


def format_per_mille(value: Decimal | int | str) -> str:
    return f"{Decimal(str(value)).normalize():f}‰"
