from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from honorarios.services.tax_engine import MAX_GROSS

# DIAN check digit weights, applied right-to-left over the NIT body
_NIT_WEIGHTS = (3, 7, 13, 17, 19, 23, 29, 37, 41, 43, 47, 53, 59, 67, 71)


def validate_monetary(value: str) -> str:
    """Validate and normalize a monetary value string.

    Accepts "5000000", "5.000.000" or "5000000.50". Returns a plain decimal string.
    Raises ValueError for invalid, non-positive or out-of-range values.
    """
    cleaned = value.strip().replace("$", "").replace(" ", "")
    # Colombian thousands separator: 5.000.000
    if re.fullmatch(r"\d{1,3}(\.\d{3})+", cleaned):
        cleaned = cleaned.replace(".", "")
    try:
        d = Decimal(cleaned)
        if not d.is_finite():
            raise InvalidOperation
        if d <= 0:
            raise ValueError(f"El valor debe ser positivo: '{value}'")
        if d > MAX_GROSS:
            raise ValueError(f"El valor supera el maximo permitido: '{value}'")
    except InvalidOperation:
        raise ValueError(f"Valor numerico invalido: '{value}'") from None
    return f"{d:f}"


def validate_date(value: str) -> str:
    """Validate an ISO date string (YYYY-MM-DD).

    Returns the value unchanged if valid.
    Raises ValueError for invalid dates.
    """
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Fecha invalida: '{value}'. Usa YYYY-MM-DD.") from None
    return value


def validate_percent(value: str) -> str:
    """Validate and normalize a percentage value (0.00-100.00)."""
    try:
        d = Decimal(value)
        if not d.is_finite():
            raise InvalidOperation
    except InvalidOperation:
        raise ValueError(f"Porcentaje invalido: '{value}'") from None
    if d < 0 or d > 100:
        raise ValueError("El porcentaje debe estar entre 0.00 y 100.00")
    return f"{d:.2f}"


def validate_per_mille(value: str) -> str:
    """Validate a municipal-tax rate in per-mille (0-100‰)."""
    try:
        d = Decimal(value.replace(",", "."))
        if not d.is_finite():
            raise InvalidOperation
    except InvalidOperation:
        raise ValueError(f"Tarifa por mil invalida: '{value}'") from None
    if d < 0 or d > 100:
        raise ValueError("La tarifa ICA debe estar entre 0 y 100 por mil")
    return f"{d.normalize():f}"


def nit_check_digit(body: str) -> int:
    total = sum(int(c) * w for c, w in zip(reversed(body), _NIT_WEIGHTS, strict=False))
    r = total % 11
    return r if r in (0, 1) else 11 - r


def validate_nit(value: str) -> str:
    """Validate a Colombian NIT: 6-15 digits with an optional '-DV' check digit.

    Dots are ignored ("900.123.456-7"). Returns the digits, plus "-DV" when given.
    """
    cleaned = value.strip().replace(".", "").replace(" ", "")
    m = re.fullmatch(r"(\d{6,15})(?:-(\d))?", cleaned)
    if not m:
        raise ValueError("NIT: debe tener entre 6 y 15 digitos, con digito de verificacion opcional")
    body, dv = m.groups()
    if dv is not None:
        if int(dv) != nit_check_digit(body):
            raise ValueError("NIT: digito de verificacion incorrecto")
        return f"{body}-{dv}"
    return body


def validate_slug(value: str) -> str:
    """Validate a client identifier: lowercase letters, digits, _ and -."""
    if not re.fullmatch(r"[a-z0-9][a-z0-9_-]*", value):
        raise ValueError("Identificador: usa letras minusculas, numeros, _ y -")
    return value
