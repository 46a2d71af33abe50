"""What a quote really leaves after withholdings, social security and costs.

Independent professionals contribute to health and pension on 40% of their
gross income at 28.5%, i.e. 11.4% of what they bill.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from honorarios.models.breakdown import FiscalBreakdown
from honorarios.models.client import ClientProfile
from honorarios.models.profile import PERSONA_NATURAL, REGIMEN_ORDINARIO, FiscalProfile
from honorarios.utils.formatters import format_cop

SEGURIDAD_SOCIAL_BASE_PCT = Decimal("40")
SEGURIDAD_SOCIAL_TARIFA_PCT = Decimal("28.5")
SEGURIDAD_SOCIAL_EFECTIVO_PCT = Decimal("11.4")

MARGEN_BAJO_PCT = Decimal("15")
PROVISION_SIN_RETENCION_PCT = Decimal("11")

_HUNDRED = Decimal("100")


def _round(value: Decimal, places: str = "1") -> Decimal:
    return value.quantize(Decimal(places), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ProfitSummary:
    neto_recibido: Decimal
    seguridad_social: Decimal
    costo_total: Decimal
    ganancia_real: Decimal
    margen_real_neto_pct: Decimal


@dataclass(frozen=True)
class FiscalAlert:
    tipo: str  # danger | warning | info
    mensaje: str
    detalle: str | None = None


def social_security_provision(gross: Decimal) -> Decimal:
    return _round(gross * SEGURIDAD_SOCIAL_EFECTIVO_PCT / _HUNDRED)


def summarize(breakdown: FiscalBreakdown, cost_total: Decimal = Decimal("0")) -> ProfitSummary:
    """Real profit = net received − costs − social security (on gross, not on gross + IVA)."""
    seguridad = social_security_provision(breakdown.valor_bruto)
    ganancia = breakdown.neto_recibido - cost_total - seguridad
    margen = ganancia / breakdown.valor_bruto * _HUNDRED if breakdown.valor_bruto > 0 else Decimal("0")
    return ProfitSummary(
        neto_recibido=breakdown.neto_recibido,
        seguridad_social=seguridad,
        costo_total=cost_total,
        ganancia_real=ganancia,
        margen_real_neto_pct=_round(margen, "0.1"),
    )


def suggested_price(cost_total: Decimal, margin_pct: Decimal) -> Decimal:
    """Price that leaves *margin_pct* over cost: cost / (1 − margin)."""
    if margin_pct >= _HUNDRED:
        return cost_total * 10
    if margin_pct <= 0:
        return cost_total
    return _round(cost_total / (1 - margin_pct / _HUNDRED))


def real_margin(price: Decimal, cost_total: Decimal) -> Decimal:
    if price <= 0:
        return Decimal("0")
    return _round((price - cost_total) / price * _HUNDRED, "0.1")


def fiscal_alerts(
    issuer: FiscalProfile,
    counterparty: ClientProfile,
    breakdown: FiscalBreakdown,
    summary: ProfitSummary,
) -> list[FiscalAlert]:
    alerts: list[FiscalAlert] = []
    price = breakdown.valor_bruto

    if summary.ganancia_real < 0:
        alerts.append(
            FiscalAlert(
                "danger",
                "Estás perdiendo plata en este proyecto.",
                "Revisa tus costos o sube el precio.",
            )
        )
    elif summary.margen_real_neto_pct < MARGEN_BAJO_PCT:
        bruto = real_margin(price, summary.costo_total) if summary.costo_total > 0 else Decimal("0")
        alerts.append(
            FiscalAlert(
                "warning",
                f"Con margen del {_round(bruto)}%, el margen REAL después de impuestos "
                f"baja a {summary.margen_real_neto_pct}%.",
            )
        )

    # Client pays everything, but part of it is owed to DIAN
    if (
        counterparty.tipo_persona == PERSONA_NATURAL
        and not counterparty.agente_retenedor
        and issuer.regimen == REGIMEN_ORDINARIO
        and breakdown.retefuente == 0
    ):
        provision = _round(price * PROVISION_SIN_RETENCION_PCT / _HUNDRED)
        alerts.append(
            FiscalAlert(
                "warning",
                "Te llega más plata pero NO es toda tuya.",
                f"Provisiona ~{format_cop(provision)} para impuestos.",
            )
        )

    if (
        issuer.regimen == REGIMEN_ORDINARIO
        and issuer.tipo_persona == PERSONA_NATURAL
        and breakdown.retefuente > 0
    ):
        alerts.append(
            FiscalAlert(
                "info",
                "Si estuvieras en Régimen Simple: no te retienen retefuente.",
                f"Eso significaría +{format_cop(breakdown.retefuente)} de flujo por este proyecto.",
            )
        )

    return alerts
