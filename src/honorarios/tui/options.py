"""Shared Select option constants for fiscal profile and client forms.

Labels use "value — description" format. ``NO_SE`` marks an unanswered
question; the profile is then resolved with conservative defaults.
"""

from __future__ import annotations

from honorarios.models.params import MUNICIPAL_RATES
from honorarios.models.quote import ESTADOS
from honorarios.services.quote_lifecycle import STATUS_LABELS

NO_SE = "__no_se__"

TIPO_PERSONA_OPTIONS: tuple[tuple[str, str], ...] = (
    ("Natural — persona natural", "natural"),
    ("Jurídica — empresa", "juridica"),
)

REGIMEN_OPTIONS: tuple[tuple[str, str], ...] = (
    ("Ordinario — régimen ordinario de renta", "ordinario"),
    ("Simple — Régimen Simple de Tributación", "simple"),
)

SI_NO_OPTIONS: tuple[tuple[str, str], ...] = (
    ("Sí", "si"),
    ("No", "no"),
)

CIUDAD_OPTIONS: tuple[tuple[str, str], ...] = tuple(
    (f"{r.ciudad} — {r.consultoria}‰", r.ciudad) for r in MUNICIPAL_RATES.values()
)

ESTADO_FILTER_OPTIONS: tuple[tuple[str, str], ...] = (
    ("Todas", "todas"),
    *((STATUS_LABELS[e], e) for e in ESTADOS),
)


def with_no_se(options: tuple[tuple[str, str], ...]) -> tuple[tuple[str, str], ...]:
    """Prepend the "don't know" choice to a set of options."""
    return (("No sé", NO_SE), *options)
