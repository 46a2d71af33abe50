from __future__ import annotations

from dataclasses import dataclass, fields, replace
from decimal import Decimal

BORRADOR = "borrador"
ENVIADA = "enviada"
ACEPTADA = "aceptada"
RECHAZADA = "rechazada"
VENCIDA = "vencida"

ESTADOS = (BORRADOR, ENVIADA, ACEPTADA, RECHAZADA, VENCIDA)


@dataclass(frozen=True)
class Quote:
    id: str
    consecutivo: str  # COT-YYYY-NNNN
    oportunidad_id: str
    estado: str
    valor_total: Decimal
    created_at: str  # ISO datetime with timezone
    descripcion: str = ""
    fecha_validez: str | None = None  # YYYY-MM-DD
    fecha_envio: str | None = None  # ISO datetime with timezone
    duplicada_de: str | None = None
    motivo_rechazo: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Quote:
        return cls(
            id=d["id"],
            consecutivo=d["consecutivo"],
            oportunidad_id=d["oportunidad_id"],
            estado=d.get("estado", BORRADOR),
            valor_total=Decimal(str(d.get("valor_total", "0"))),
            created_at=d["created_at"],
            descripcion=d.get("descripcion", ""),
            fecha_validez=d.get("fecha_validez"),
            fecha_envio=d.get("fecha_envio"),
            duplicada_de=d.get("duplicada_de"),
            motivo_rechazo=d.get("motivo_rechazo"),
        )

    def to_dict(self) -> dict:
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d["valor_total"] = str(self.valor_total)
        return {k: v for k, v in d.items() if v is not None}

    def with_changes(self, **changes) -> Quote:
        return replace(self, **changes)
