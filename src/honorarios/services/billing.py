from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

import yaml

from honorarios.config import (
    DEFAULT_FISCAL_YEAR,
    get_fiscal_year,
    load_client,
    load_fiscal_params,
    load_fiscal_profile,
)
from honorarios.models.breakdown import FiscalBreakdown
from honorarios.models.client import DEFAULT_CLIENT_PROFILE, Client, ClientProfile
from honorarios.models.params import DEFAULT_PARAMS, FiscalParams
from honorarios.models.profile import FiscalProfile, resolve_fiscal_profile
from honorarios.services.profitability import FiscalAlert, ProfitSummary, fiscal_alerts, summarize
from honorarios.services.tax_engine import compute_breakdown

logger = logging.getLogger(__name__)


@dataclass
class PreparedBreakdown:
    """Everything the calculator shows for one amount."""

    issuer: FiscalProfile
    counterparty: ClientProfile
    params: FiscalParams
    breakdown: FiscalBreakdown
    summary: ProfitSummary
    alerts: list[FiscalAlert]
    client: Client | None = None
    year: int = 0
    estimation_reasons: list[str] = field(default_factory=list)


def _load_issuer(reasons: list[str]) -> FiscalProfile:
    try:
        data = load_fiscal_profile()
    except FileNotFoundError:
        reasons.append("Sin perfil fiscal: se asumen valores conservadores")
        return resolve_fiscal_profile(None)[0]
    profile, estimated = resolve_fiscal_profile(data)
    if estimated:
        reasons.append("Perfil fiscal incompleto: se asumen valores conservadores")
    return profile


def _load_params(year: int, reasons: list[str]) -> FiscalParams:
    try:
        data = load_fiscal_params(year)
    except yaml.YAMLError:
        logger.warning("Tabla de parametros %d ilegible, usando la incluida", year, exc_info=True)
        data = None
    if data is None:
        if year != DEFAULT_FISCAL_YEAR:
            reasons.append(f"Sin parametros fiscales para {year}: se usan los valores incluidos")
        return DEFAULT_PARAMS
    return FiscalParams.from_dict(data)


def prepare_breakdown(
    gross: Decimal | str,
    client_slug: str | None = None,
    year: int | None = None,
    cost_total: Decimal | str = Decimal("0"),
) -> PreparedBreakdown:
    """Load issuer, client and parameter table from config and compute the breakdown.

    Missing configuration never blocks the calculation: defaults stand in and the
    result is flagged as estimated, with the reasons listed.
    Raises FileNotFoundError if *client_slug* names a client that does not exist.
    """
    year = year or get_fiscal_year()
    reasons: list[str] = []

    issuer = _load_issuer(reasons)
    params = _load_params(year, reasons)

    client = None
    if client_slug:
        client = Client.from_dict(load_client(client_slug), slug=client_slug)
        counterparty = client.perfil
    else:
        counterparty = DEFAULT_CLIENT_PROFILE
        reasons.append("Sin cliente: se asume persona juridica agente retenedor")

    breakdown = compute_breakdown(gross, issuer, counterparty, params, is_estimated=bool(reasons))
    summary = summarize(breakdown, Decimal(str(cost_total)))
    alerts = fiscal_alerts(issuer, counterparty, breakdown, summary)

    if reasons:
        logger.info("Calculo estimado: %s", "; ".join(reasons))

    return PreparedBreakdown(
        issuer=issuer,
        counterparty=counterparty,
        params=params,
        breakdown=breakdown,
        summary=summary,
        alerts=alerts,
        client=client,
        year=year,
        estimation_reasons=reasons,
    )
