"""Fiscal parameter tables, versioned by fiscal year.

Values change every year (DIAN resolution on the UVT); the bundled table is
only a default and ``config/fiscal_params/<year>.yaml`` overrides it.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from decimal import Decimal


@dataclass(frozen=True)
class FiscalParams:
    uvt: Decimal
    iva_general: Decimal  # %
    retefuente_honorarios_declarante: Decimal  # %
    retefuente_honorarios_no_declarante: Decimal  # %
    retefuente_servicios: Decimal  # %
    # Higher services tier. Kept in the table but never selected by the engine.
    retefuente_servicios_alta: Decimal  # %
    reteica_default: Decimal  # por mil
    reteiva_pct: Decimal  # % sobre el IVA
    tope_servicios_uvt: Decimal
    tope_honorarios_uvt: Decimal

    @classmethod
    def from_dict(cls, d: dict, base: FiscalParams | None = None) -> FiscalParams:
        """Build a table from a YAML dict; keys missing from *d* come from *base*."""
        base = base or DEFAULT_PARAMS
        values = {}
        for f in fields(cls):
            raw = d.get(f.name)
            values[f.name] = getattr(base, f.name) if raw is None else Decimal(str(raw))
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return {k: str(v) for k, v in asdict(self).items()}

    @property
    def tope_honorarios(self) -> Decimal:
        """Honoraria withholding threshold in pesos."""
        return self.tope_honorarios_uvt * self.uvt

    @property
    def tope_servicios(self) -> Decimal:
        """Services withholding threshold in pesos."""
        return self.tope_servicios_uvt * self.uvt


DEFAULT_PARAMS = FiscalParams(
    uvt=Decimal("49799"),
    iva_general=Decimal("19"),
    retefuente_honorarios_declarante=Decimal("11"),
    retefuente_honorarios_no_declarante=Decimal("10"),
    retefuente_servicios=Decimal("4"),
    retefuente_servicios_alta=Decimal("6"),
    reteica_default=Decimal("9.66"),
    reteiva_pct=Decimal("15"),
    tope_servicios_uvt=Decimal("4"),
    tope_honorarios_uvt=Decimal("27"),
)


@dataclass(frozen=True)
class MunicipalRate:
    ciudad: str
    consultoria: Decimal  # por mil
    rango_min: Decimal
    rango_max: Decimal


MUNICIPAL_RATES: dict[str, MunicipalRate] = {
    r.ciudad: r
    for r in (
        MunicipalRate("Bogotá", Decimal("9.66"), Decimal("4.14"), Decimal("13.8")),
        MunicipalRate("Medellín", Decimal("9.66"), Decimal("4.14"), Decimal("11.04")),
        MunicipalRate("Cali", Decimal("10.0"), Decimal("4.14"), Decimal("10.0")),
        MunicipalRate("Barranquilla", Decimal("7.0"), Decimal("4.14"), Decimal("10.0")),
        MunicipalRate("Cartagena", Decimal("7.0"), Decimal("4.14"), Decimal("10.0")),
        MunicipalRate("Bucaramanga", Decimal("7.0"), Decimal("4.14"), Decimal("10.0")),
        MunicipalRate("Pereira", Decimal("7.0"), Decimal("4.14"), Decimal("10.0")),
        MunicipalRate("Manizales", Decimal("7.0"), Decimal("4.14"), Decimal("10.0")),
        MunicipalRate("Ibagué", Decimal("7.0"), Decimal("4.14"), Decimal("10.0")),
        MunicipalRate("Villavicencio", Decimal("7.0"), Decimal("4.14"), Decimal("10.0")),
    )
}


def municipal_rate_for(ciudad: str) -> Decimal | None:
    """Consulting municipal-tax rate (per-mille) for a city, or None if unknown."""
    rate = MUNICIPAL_RATES.get(ciudad)
    return rate.consultoria if rate else None
