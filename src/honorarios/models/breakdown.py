from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal


@dataclass(frozen=True)
class FiscalBreakdown:
    """Itemized result of one invoice amount: what the client pays, withholds, and transfers."""

    # Cliente paga
    valor_bruto: Decimal
    iva: Decimal
    total_cliente_paga: Decimal

    # Te retienen
    retefuente: Decimal
    reteica: Decimal
    reteiva: Decimal
    total_retenciones: Decimal

    # Te consignan
    neto_recibido: Decimal

    # Tarifas aplicadas
    retefuente_rate: Decimal  # %
    iva_rate: Decimal  # %
    reteica_rate: Decimal  # por mil
    reteiva_rate: Decimal  # % sobre el IVA

    has_iva: bool
    has_retenciones: bool
    is_estimated: bool

    def to_dict(self) -> dict[str, str | bool]:
        """JSON-safe representation; decimals become strings."""
        out: dict[str, str | bool] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = value if isinstance(value, bool) else str(value)
        return out

    @classmethod
    def from_dict(cls, d: dict) -> FiscalBreakdown:
        values: dict[str, Decimal | bool] = {}
        for f in fields(cls):
            raw = d[f.name]
            values[f.name] = raw if f.type == "bool" else Decimal(str(raw))
        return cls(**values)  # type: ignore[arg-type]
