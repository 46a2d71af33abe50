"""Quote lifecycle: borrador → enviada → aceptada / rechazada / vencida.

A rejected quote may be reopened (back to enviada); aceptada and vencida are
terminal. Only one quote per opportunity may be enviada at a time. That rule
spans sibling records, so it is checked here against a snapshot of sibling
statuses supplied by the caller. Making it hold under concurrent writers is
the storage layer's job (see utils.quote_store).

Validators never raise: they return a ValidationResult with a reason that can
be shown to the user as-is.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from honorarios.config import COT
from honorarios.models.quote import ACEPTADA, BORRADOR, ENVIADA, RECHAZADA, VENCIDA

TRANSITIONS: dict[str, frozenset[str]] = {
    BORRADOR: frozenset({ENVIADA}),
    ENVIADA: frozenset({ACEPTADA, RECHAZADA, VENCIDA}),
    RECHAZADA: frozenset({ENVIADA}),
    ACEPTADA: frozenset(),
    VENCIDA: frozenset(),
}

STATUS_LABELS: dict[str, str] = {
    BORRADOR: "Borrador",
    ENVIADA: "Enviada",
    ACEPTADA: "Aceptada",
    RECHAZADA: "Rechazada",
    VENCIDA: "Vencida",
}

# Actions
EDIT = "edit"
SEND = "send"
ACCEPT = "accept"
REJECT = "reject"
REOPEN = "reopen"
DUPLICATE = "duplicate"
VIEW = "view"

_ACTIONS_BY_STATUS: dict[str, tuple[str, ...]] = {
    BORRADOR: (EDIT, SEND, DUPLICATE, VIEW),
    ENVIADA: (ACCEPT, REJECT, DUPLICATE, VIEW),
    ACEPTADA: (DUPLICATE, VIEW),
    RECHAZADA: (REOPEN, DUPLICATE, VIEW),
    VENCIDA: (DUPLICATE, VIEW),
}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> ValidationResult:
        return cls(valid=False, error=error)


@dataclass(frozen=True)
class QuoteContext:
    """What a validator needs: the quote's own state plus its siblings' statuses."""

    current_status: str
    total: Decimal = Decimal("0")
    sibling_statuses: Sequence[str] = field(default_factory=tuple)

    def sibling_sent(self) -> bool:
        return ENVIADA in self.sibling_statuses


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in TRANSITIONS.get(from_status, frozenset())


def validate_send(ctx: QuoteContext) -> ValidationResult:
    if ctx.current_status != BORRADOR:
        return ValidationResult.fail("Solo se puede enviar desde borrador")
    if ctx.total <= 0:
        return ValidationResult.fail("El precio debe ser mayor a 0")
    if ctx.sibling_sent():
        return ValidationResult.fail(
            "Ya hay una cotización enviada en esta oportunidad. "
            "Rechaza o acepta la actual primero."
        )
    return ValidationResult.ok()


def validate_accept(ctx: QuoteContext) -> ValidationResult:
    if ctx.current_status != ENVIADA:
        return ValidationResult.fail("Solo se puede aceptar una cotización enviada")
    return ValidationResult.ok()


def validate_reject(ctx: QuoteContext) -> ValidationResult:
    if ctx.current_status != ENVIADA:
        return ValidationResult.fail("Solo se puede rechazar una cotización enviada")
    return ValidationResult.ok()


def validate_reopen(ctx: QuoteContext) -> ValidationResult:
    if ctx.current_status != RECHAZADA:
        return ValidationResult.fail("Solo se puede reabrir una cotización rechazada")
    # A sibling may have been sent after this one was rejected
    if ctx.sibling_sent():
        return ValidationResult.fail("Ya hay una cotización enviada. Resuélvela primero.")
    return ValidationResult.ok()


def validate_expire(ctx: QuoteContext) -> ValidationResult:
    if ctx.current_status != ENVIADA:
        return ValidationResult.fail("Solo puede vencer una cotización enviada")
    return ValidationResult.ok()


# Transition actions: validator and the status the quote moves to when it passes.
ACTION_VALIDATORS: dict[str, Callable[[QuoteContext], ValidationResult]] = {
    SEND: validate_send,
    ACCEPT: validate_accept,
    REJECT: validate_reject,
    REOPEN: validate_reopen,
}

ACTION_TARGETS: dict[str, str] = {
    SEND: ENVIADA,
    ACCEPT: ACEPTADA,
    REJECT: RECHAZADA,
    REOPEN: ENVIADA,
}


def available_actions(status: str) -> tuple[str, ...]:
    """UI-facing actions for a status; duplicate and view are always present."""
    return _ACTIONS_BY_STATUS.get(status, (VIEW,))


def is_editable(status: str) -> bool:
    return status == BORRADOR


def is_expired(valid_until: str | date | datetime | None, now: datetime | None = None) -> bool:
    """True if *valid_until* is set and strictly in the past.

    Evaluated against the clock on every call, in Colombia time unless *now*
    says otherwise. A date without time stays valid for the whole day it names.
    """
    if not valid_until:
        return False
    now = now or datetime.now(COT)
    if isinstance(valid_until, str):
        if "T" in valid_until or " " in valid_until:
            valid_until = datetime.fromisoformat(valid_until)
        else:
            valid_until = date.fromisoformat(valid_until)
    if isinstance(valid_until, datetime):
        if (valid_until.tzinfo is None) != (now.tzinfo is None):
            valid_until = valid_until.replace(tzinfo=now.tzinfo)
        return valid_until < now
    return valid_until < now.date()
