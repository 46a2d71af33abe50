"""Colombian withholding calculator for a single invoice amount.

Turns a gross amount plus the issuer and client fiscal profiles into the full
breakdown: IVA, what the client pays, the three withholdings (retefuente,
reteICA, reteIVA) and what actually reaches the issuer's account.

Order matters: IVA is computed first because reteIVA is taken over the IVA
amount, and the withholding gate is checked before any threshold.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from honorarios.models.breakdown import FiscalBreakdown
from honorarios.models.client import DEFAULT_CLIENT_PROFILE, ClientProfile
from honorarios.models.params import DEFAULT_PARAMS, FiscalParams
from honorarios.models.profile import (
    DEFAULT_FISCAL_PROFILE,
    PERSONA_NATURAL,
    REGIMEN_SIMPLE,
    FiscalProfile,
)
from honorarios.services.exceptions import InvalidAmountError

ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_THOUSAND = Decimal("1000")

# 10^15 pesos; every computed line stays inside the default 28-digit context
MAX_GROSS = Decimal("1e15")


def _round(value: Decimal) -> Decimal:
    """Round to whole pesos, half up."""
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _to_amount(value: Decimal | int | str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmountError(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(value) from None
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(value)
    if amount > MAX_GROSS:
        raise InvalidAmountError(value, "Supera el maximo de $ 1.000.000.000.000.000.")
    return amount


def client_withholds(issuer: FiscalProfile, counterparty: ClientProfile) -> bool:
    """Withholding gate: the client is an agent and neither party is in Régimen Simple."""
    return (
        counterparty.agente_retenedor
        and issuer.regimen != REGIMEN_SIMPLE
        and counterparty.regimen != REGIMEN_SIMPLE
    )


def _retefuente(
    gross: Decimal, issuer: FiscalProfile, params: FiscalParams
) -> tuple[Decimal, Decimal]:
    """Income withholding line as (rate, amount); zero below the person-kind threshold."""
    if issuer.tipo_persona == PERSONA_NATURAL:
        # Honorarios
        if gross <= params.tope_honorarios:
            return ZERO, ZERO
        rate = (
            params.retefuente_honorarios_declarante
            if issuer.declarante
            else params.retefuente_honorarios_no_declarante
        )
    else:
        # Servicios. retefuente_servicios_alta is never selected here.
        if gross <= params.tope_servicios:
            return ZERO, ZERO
        rate = params.retefuente_servicios
    return rate, _round(gross * rate / _HUNDRED)


def compute_breakdown(
    gross: Decimal | int | str,
    issuer: FiscalProfile,
    counterparty: ClientProfile,
    params: FiscalParams = DEFAULT_PARAMS,
    *,
    is_estimated: bool = False,
) -> FiscalBreakdown:
    """Compute the fiscal breakdown of an invoice.

    *is_estimated* is passed through untouched; callers set it when default
    profiles stood in for an incomplete configuration.

    Raises InvalidAmountError if *gross* is not a positive finite number or
    exceeds MAX_GROSS.
    """
    valor_bruto = _to_amount(gross)

    # IVA
    has_iva = issuer.responsable_iva
    iva_rate = params.iva_general if has_iva else ZERO
    iva = _round(valor_bruto * iva_rate / _HUNDRED)
    total_cliente_paga = valor_bruto + iva

    retefuente = reteica = reteiva = ZERO
    retefuente_rate = reteica_rate = reteiva_rate = ZERO

    if client_withholds(issuer, counterparty):
        retefuente_rate, retefuente = _retefuente(valor_bruto, issuer, params)

        reteica_rate = issuer.tarifa_ica
        reteica = _round(valor_bruto * reteica_rate / _THOUSAND)

        if has_iva and iva > 0:
            reteiva_rate = params.reteiva_pct
            reteiva = _round(iva * reteiva_rate / _HUNDRED)

    total_retenciones = retefuente + reteica + reteiva

    return FiscalBreakdown(
        valor_bruto=valor_bruto,
        iva=iva,
        total_cliente_paga=total_cliente_paga,
        retefuente=retefuente,
        reteica=reteica,
        reteiva=reteiva,
        total_retenciones=total_retenciones,
        neto_recibido=total_cliente_paga - total_retenciones,
        retefuente_rate=retefuente_rate,
        iva_rate=iva_rate,
        reteica_rate=reteica_rate,
        reteiva_rate=reteiva_rate,
        has_iva=has_iva,
        has_retenciones=total_retenciones > 0,
        is_estimated=is_estimated,
    )


def estimate_breakdown(
    gross: Decimal | int | str,
    issuer: FiscalProfile | None = None,
    counterparty: ClientProfile | None = None,
    params: FiscalParams = DEFAULT_PARAMS,
) -> FiscalBreakdown:
    """Like compute_breakdown, substituting the default profiles for missing ones."""
    estimated = issuer is None or counterparty is None
    return compute_breakdown(
        gross,
        issuer or DEFAULT_FISCAL_PROFILE,
        counterparty or DEFAULT_CLIENT_PROFILE,
        params,
        is_estimated=estimated,
    )
