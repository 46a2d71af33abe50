from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal

from honorarios.models.params import municipal_rate_for

PERSONA_NATURAL = "natural"
PERSONA_JURIDICA = "juridica"
TIPOS_PERSONA = frozenset({PERSONA_NATURAL, PERSONA_JURIDICA})

REGIMEN_ORDINARIO = "ordinario"
REGIMEN_SIMPLE = "simple"
REGIMENES = frozenset({REGIMEN_ORDINARIO, REGIMEN_SIMPLE})

DEFAULT_CIUDAD_ICA = "Bogotá"
DEFAULT_TARIFA_ICA = Decimal("9.66")


def check_choice(value: str, allowed: frozenset[str], field_name: str) -> str:
    if value not in allowed:
        opciones = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name}: valor invalido '{value}' (opciones: {opciones})")
    return value


def as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "si", "sí", "yes", "s")
    return bool(value)


def _or_default(d: dict, key: str, default: object) -> object:
    value = d.get(key)
    return default if value is None else value


@dataclass(frozen=True)
class FiscalProfile:
    """Issuer (the independent professional): the party that bills and gets withheld."""

    tipo_persona: str  # natural | juridica
    regimen: str  # ordinario | simple
    declarante: bool  # declarante de renta
    responsable_iva: bool
    autorretenedor: bool
    tarifa_ica: Decimal  # por mil
    ciudad_ica: str

    def __post_init__(self) -> None:
        check_choice(self.tipo_persona, TIPOS_PERSONA, "tipo_persona")
        check_choice(self.regimen, REGIMENES, "regimen")

    @classmethod
    def from_dict(cls, d: dict) -> FiscalProfile:
        """Create a FiscalProfile from a YAML-loaded dict, applying defaults for optional fields."""
        ciudad = d.get("ciudad_ica") or DEFAULT_CIUDAD_ICA
        tarifa = d.get("tarifa_ica")
        if tarifa is None:
            tarifa = municipal_rate_for(ciudad) or DEFAULT_TARIFA_ICA
        return cls(
            tipo_persona=d["tipo_persona"],
            regimen=d.get("regimen") or REGIMEN_ORDINARIO,
            declarante=as_bool(_or_default(d, "declarante", True)),
            responsable_iva=as_bool(_or_default(d, "responsable_iva", True)),
            autorretenedor=as_bool(_or_default(d, "autorretenedor", False)),
            tarifa_ica=Decimal(str(tarifa)),
            ciudad_ica=ciudad,
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        d["tarifa_ica"] = str(self.tarifa_ica)
        return d


DEFAULT_FISCAL_PROFILE = FiscalProfile(
    tipo_persona=PERSONA_NATURAL,
    regimen=REGIMEN_ORDINARIO,
    declarante=True,
    responsable_iva=True,
    autorretenedor=False,
    tarifa_ica=DEFAULT_TARIFA_ICA,
    ciudad_ica=DEFAULT_CIUDAD_ICA,
)


def resolve_fiscal_profile(d: dict | None) -> tuple[FiscalProfile, bool]:
    """Build a profile from possibly incomplete answers.

    Unanswered questions (missing or null) get the conservative defaults:
    ordinary regime, VAT-responsible, income-tax filer, Bogotá and the city's municipal rate.
    Returns the profile and whether any default had to be substituted.
    """
    if not d:
        return DEFAULT_FISCAL_PROFILE, True

    estimated = False
    resolved = dict(d)

    if resolved.get("tipo_persona") is None:
        resolved["tipo_persona"] = DEFAULT_FISCAL_PROFILE.tipo_persona
        estimated = True
    if resolved.get("regimen") is None:
        resolved["regimen"] = REGIMEN_ORDINARIO
        estimated = True
    if resolved.get("responsable_iva") is None:
        resolved["responsable_iva"] = True
        estimated = True
    if resolved.get("declarante") is None:
        resolved["declarante"] = True
        estimated = True
    if not resolved.get("ciudad_ica"):
        resolved["ciudad_ica"] = DEFAULT_CIUDAD_ICA
        # The city only matters when it has to supply the rate
        estimated = estimated or resolved.get("tarifa_ica") is None
    if resolved.get("tarifa_ica") is None:
        rate = municipal_rate_for(resolved["ciudad_ica"])
        if rate is None:
            rate = DEFAULT_TARIFA_ICA
            estimated = True
        resolved["tarifa_ica"] = rate

    return FiscalProfile.from_dict(resolved), estimated
