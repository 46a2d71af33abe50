"""Local quote store: every quote of every opportunity, in one JSON file.

Status changes are read, validated and written under an exclusive file lock, so the
lifecycle validators always see a fresh sibling snapshot and two processes
can never both send a quote for the same opportunity.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

from filelock import FileLock

from honorarios import config as _config
from honorarios.models.quote import BORRADOR, ENVIADA, VENCIDA, Quote
from honorarios.services import quote_lifecycle as lifecycle
from honorarios.services.exceptions import QuoteNotFoundError, QuoteTransitionError
from honorarios.utils.sequence import next_quote_number

logger = logging.getLogger(__name__)


def _store_path() -> Path:
    return _config.get_quotes_path()


def _backup_corrupt(path: Path) -> Path:
    """Rename a corrupt file to a timestamped backup before it gets overwritten."""
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
    backup = path.with_name(f"{path.name}.corrupt.{ts}")
    path.rename(backup)
    logger.warning("Archivo corrupto respaldado: %s → %s", path, backup)
    return backup


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during store read-modify-write."""
    sp = _store_path()
    sp.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(sp.with_suffix(".lock"))
    with lock:
        yield


def _load() -> list[dict[str, Any]]:
    sp = _store_path()
    if not sp.exists():
        return []
    try:
        return json.loads(sp.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError):
        _backup_corrupt(sp)
        return []


def _save(entries: list[dict[str, Any]]) -> None:
    sp = _store_path()
    sp.parent.mkdir(parents=True, exist_ok=True)
    tmp = sp.with_suffix(".tmp")
    tmp.write_text(json.dumps(entries, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    os.replace(tmp, sp)


def _now(now: datetime | None = None) -> datetime:
    return now or datetime.now(_config.COT)


def _find_index(entries: list[dict[str, Any]], quote_id: str) -> int:
    for i, e in enumerate(entries):
        if e.get("id") == quote_id:
            return i
    raise QuoteNotFoundError(quote_id)


def _sibling_statuses(entries: list[dict[str, Any]], quote: Quote) -> tuple[str, ...]:
    return tuple(
        e.get("estado", BORRADOR)
        for e in entries
        if e.get("oportunidad_id") == quote.oportunidad_id and e.get("id") != quote.id
    )


def list_quotes(oportunidad_id: str | None = None) -> list[Quote]:
    """Return all quotes, optionally only those of one opportunity, newest first."""
    with _locked():
        entries = _load()
    quotes = [Quote.from_dict(e) for e in entries]
    if oportunidad_id:
        quotes = [q for q in quotes if q.oportunidad_id == oportunidad_id]
    return sorted(quotes, key=lambda q: q.created_at, reverse=True)


def find_quote(quote_id: str) -> Quote | None:
    with _locked():
        entries = _load()
    for e in entries:
        if e.get("id") == quote_id:
            return Quote.from_dict(e)
    return None


def create_quote(
    oportunidad_id: str,
    valor_total: Decimal | str = Decimal("0"),
    descripcion: str = "",
    *,
    now: datetime | None = None,
    duplicada_de: str | None = None,
) -> Quote:
    """Create a new draft quote with the next consecutive number."""
    ts = _now(now)
    with _locked():
        entries = _load()
        quote = Quote(
            id=uuid.uuid4().hex[:12],
            consecutivo=next_quote_number(ts.year),
            oportunidad_id=oportunidad_id,
            estado=BORRADOR,
            valor_total=Decimal(str(valor_total)),
            created_at=ts.isoformat(timespec="seconds"),
            descripcion=descripcion.strip(),
            duplicada_de=duplicada_de,
        )
        entries.append(quote.to_dict())
        _save(entries)
    logger.info("Cotización %s creada (oportunidad %s)", quote.consecutivo, oportunidad_id)
    return quote


def update_quote(
    quote_id: str,
    *,
    valor_total: Decimal | str | None = None,
    descripcion: str | None = None,
) -> Quote:
    """Edit total and description. Only drafts are editable."""
    with _locked():
        entries = _load()
        idx = _find_index(entries, quote_id)
        quote = Quote.from_dict(entries[idx])
        if not lifecycle.is_editable(quote.estado):
            raise QuoteTransitionError(
                quote_id, lifecycle.EDIT, "Solo se puede editar una cotización en borrador"
            )
        changes: dict[str, Any] = {}
        if valor_total is not None:
            changes["valor_total"] = Decimal(str(valor_total))
        if descripcion is not None:
            changes["descripcion"] = descripcion.strip()
        quote = quote.with_changes(**changes)
        entries[idx] = quote.to_dict()
        _save(entries)
    return quote


def apply_action(
    quote_id: str, action: str, *, now: datetime | None = None, motivo: str | None = None
) -> Quote:
    """Run a lifecycle action (send, accept, reject, reopen) against the stored quote.

    *motivo* is kept as the rejection reason on reject and cleared on reopen.

    Raises QuoteNotFoundError for an unknown id and QuoteTransitionError with the
    validator's reason when the action is not allowed; nothing is written then.
    """
    validator = lifecycle.ACTION_VALIDATORS.get(action)
    if validator is None:
        raise QuoteTransitionError(quote_id, action, f"Acción desconocida: {action}")

    ts = _now(now)
    with _locked():
        entries = _load()
        idx = _find_index(entries, quote_id)
        quote = Quote.from_dict(entries[idx])
        ctx = lifecycle.QuoteContext(
            current_status=quote.estado,
            total=quote.valor_total,
            sibling_statuses=_sibling_statuses(entries, quote),
        )
        result = validator(ctx)
        if not result.valid:
            raise QuoteTransitionError(quote_id, action, result.error or "Transición no permitida")

        target = lifecycle.ACTION_TARGETS[action]
        changes: dict[str, Any] = {"estado": target}
        if action == lifecycle.SEND:
            changes["fecha_envio"] = ts.isoformat(timespec="seconds")
        if action in (lifecycle.SEND, lifecycle.REOPEN):
            # Reopening starts a fresh validity window
            changes["fecha_validez"] = (
                ts.date() + timedelta(days=_config.QUOTE_VALIDITY_DAYS)
            ).isoformat()
        if action == lifecycle.REJECT:
            changes["motivo_rechazo"] = (motivo or "").strip() or None
        elif action == lifecycle.REOPEN:
            changes["motivo_rechazo"] = None
        quote = quote.with_changes(**changes)
        entries[idx] = quote.to_dict()
        _save(entries)

    logger.info("Cotización %s: %s → %s", quote.consecutivo, ctx.current_status, target)
    return quote


def duplicate_quote(quote_id: str, *, now: datetime | None = None) -> Quote:
    """Copy a quote's total and description into a new draft of the same opportunity."""
    original = find_quote(quote_id)
    if original is None:
        raise QuoteNotFoundError(quote_id)
    return create_quote(
        original.oportunidad_id,
        original.valor_total,
        original.descripcion,
        now=now,
        duplicada_de=original.id,
    )


def expire_overdue(now: datetime | None = None) -> list[Quote]:
    """Move sent quotes whose validity date has passed to vencida. Returns those moved."""
    ts = _now(now)
    expired: list[Quote] = []
    with _locked():
        entries = _load()
        for idx, e in enumerate(entries):
            quote = Quote.from_dict(e)
            if quote.estado != ENVIADA or not lifecycle.is_expired(quote.fecha_validez, ts):
                continue
            if not lifecycle.validate_expire(lifecycle.QuoteContext(quote.estado)).valid:
                continue
            quote = quote.with_changes(estado=VENCIDA)
            entries[idx] = quote.to_dict()
            expired.append(quote)
        if expired:
            _save(entries)
    for q in expired:
        logger.info("Cotización %s vencida (validez %s)", q.consecutivo, q.fecha_validez)
    return expired


# --- Health check (read-only, no locks) ---


@dataclass
class StoreHealth:
    store_ok: bool
    quote_count: int
    corrupt_backups: list[str] = field(default_factory=list)
    # Opportunities with more than one sent quote (should never happen)
    conflicting_opportunities: list[str] = field(default_factory=list)


def check_store_health() -> StoreHealth:
    """Probe the store file for corruption and invariant violations (read-only)."""
    sp = _store_path()
    ok = True
    entries: list[dict[str, Any]] = []
    if sp.exists():
        try:
            entries = json.loads(sp.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, ValueError):
            ok = False
    backups = sorted(str(p) for p in sp.parent.glob(f"{sp.name}.corrupt.*")) if sp.parent.exists() else []

    sent_per_opp: dict[str, int] = {}
    for e in entries:
        if e.get("estado") == ENVIADA:
            opp = e.get("oportunidad_id", "")
            sent_per_opp[opp] = sent_per_opp.get(opp, 0) + 1
    conflicts = sorted(opp for opp, n in sent_per_opp.items() if n > 1)

    return StoreHealth(
        store_ok=ok,
        quote_count=len(entries),
        corrupt_backups=backups,
        conflicting_opportunities=conflicts,
    )

