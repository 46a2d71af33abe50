from __future__ import annotations

from dataclasses import dataclass

from honorarios.models.profile import (
    PERSONA_JURIDICA,
    REGIMEN_ORDINARIO,
    REGIMENES,
    TIPOS_PERSONA,
    as_bool,
    check_choice,
)


@dataclass(frozen=True)
class ClientProfile:
    """Fiscal attributes of the paying counterparty that decide what it withholds."""

    tipo_persona: str
    agente_retenedor: bool
    gran_contribuyente: bool
    regimen: str

    def __post_init__(self) -> None:
        check_choice(self.tipo_persona, TIPOS_PERSONA, "tipo_persona")
        check_choice(self.regimen, REGIMENES, "regimen")

    @classmethod
    def from_dict(cls, d: dict) -> ClientProfile:
        tipo = d.get("tipo_persona", PERSONA_JURIDICA)
        return cls(
            tipo_persona=tipo,
            # Companies withhold by default; natural persons only when declared
            agente_retenedor=as_bool(d.get("agente_retenedor", tipo == PERSONA_JURIDICA)),
            gran_contribuyente=as_bool(d.get("gran_contribuyente", False)),
            regimen=d.get("regimen", REGIMEN_ORDINARIO),
        )


DEFAULT_CLIENT_PROFILE = ClientProfile(
    tipo_persona=PERSONA_JURIDICA,
    agente_retenedor=True,
    gran_contribuyente=False,
    regimen=REGIMEN_ORDINARIO,
)


@dataclass(frozen=True)
class Client:
    """Client record as stored in config/clients/<slug>.yaml."""

    slug: str
    nombre: str
    nit: str
    perfil: ClientProfile

    @classmethod
    def from_dict(cls, d: dict, slug: str = "") -> Client:
        """Create a Client from a YAML-loaded dict; fiscal keys live at the top level."""
        return cls(
            slug=slug or d.get("slug", ""),
            nombre=d["nombre"],
            nit=str(d.get("nit", "")),
            perfil=ClientProfile.from_dict(d),
        )

    def to_dict(self) -> dict:
        return {
            "nombre": self.nombre,
            "nit": self.nit,
            "tipo_persona": self.perfil.tipo_persona,
            "agente_retenedor": self.perfil.agente_retenedor,
            "gran_contribuyente": self.perfil.gran_contribuyente,
            "regimen": self.perfil.regimen,
        }
