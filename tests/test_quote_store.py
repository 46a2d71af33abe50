from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

import pytest

from honorarios.config import COT
from honorarios.models.quote import ACEPTADA, BORRADOR, ENVIADA, RECHAZADA, VENCIDA
from honorarios.services import quote_lifecycle as lifecycle
from honorarios.services.exceptions import QuoteNotFoundError, QuoteTransitionError
from honorarios.utils import quote_store

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=COT)


@pytest.fixture
def store(data_dir):
    return data_dir / "cotizaciones.json"


def _send(quote_id, now=NOW):
    return quote_store.apply_action(quote_id, lifecycle.SEND, now=now)


class TestCreate:
    def test_creates_numbered_draft(self, store):
        q = quote_store.create_quote("opp-1", Decimal("5000000"), "  Sitio web ", now=NOW)
        assert q.estado == BORRADOR
        assert q.consecutivo == "COT-2026-0001"
        assert q.valor_total == Decimal("5000000")
        assert q.descripcion == "Sitio web"
        assert q.created_at == "2026-03-02T09:30:00-05:00"
        assert q.fecha_validez is None
        assert store.exists()

    def test_numbers_are_consecutive(self, store):
        first = quote_store.create_quote("opp-1", now=NOW)
        second = quote_store.create_quote("opp-2", now=NOW)
        assert first.consecutivo == "COT-2026-0001"
        assert second.consecutivo == "COT-2026-0002"
        assert first.id != second.id

    def test_persisted_as_json(self, store):
        q = quote_store.create_quote("opp-1", "1500000", now=NOW)
        data = json.loads(store.read_text(encoding="utf-8"))
        assert data == [q.to_dict()]
        assert data[0]["valor_total"] == "1500000"


class TestList:
    def test_newest_first(self, store):
        old = quote_store.create_quote("opp-1", now=datetime(2026, 1, 5, tzinfo=COT))
        new = quote_store.create_quote("opp-1", now=datetime(2026, 2, 5, tzinfo=COT))
        assert [q.id for q in quote_store.list_quotes()] == [new.id, old.id]

    def test_filter_by_opportunity(self, store):
        a = quote_store.create_quote("opp-a", now=NOW)
        quote_store.create_quote("opp-b", now=NOW)
        assert [q.id for q in quote_store.list_quotes("opp-a")] == [a.id]

    def test_empty_store(self, store):
        assert quote_store.list_quotes() == []
        assert quote_store.find_quote("nope") is None


class TestUpdate:
    def test_edit_draft(self, store):
        q = quote_store.create_quote("opp-1", now=NOW)
        updated = quote_store.update_quote(q.id, valor_total="2000000", descripcion="Fase 2")
        assert updated.valor_total == Decimal("2000000")
        assert updated.descripcion == "Fase 2"
        assert quote_store.find_quote(q.id) == updated

    def test_sent_quote_is_not_editable(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        _send(q.id)
        with pytest.raises(QuoteTransitionError) as exc_info:
            quote_store.update_quote(q.id, valor_total="5")
        assert exc_info.value.action == lifecycle.EDIT
        assert quote_store.find_quote(q.id).valor_total == Decimal("1000")

    def test_unknown_id(self, store):
        with pytest.raises(QuoteNotFoundError):
            quote_store.update_quote("missing", valor_total="5")


class TestSend:
    def test_sets_dates(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        sent = _send(q.id)
        assert sent.estado == ENVIADA
        assert sent.fecha_envio == "2026-03-02T09:30:00-05:00"
        assert sent.fecha_validez == "2026-04-01"

    def test_zero_total_rejected(self, store):
        q = quote_store.create_quote("opp-1", now=NOW)
        with pytest.raises(QuoteTransitionError, match="mayor a 0"):
            _send(q.id)
        assert quote_store.find_quote(q.id).estado == BORRADOR

    def test_one_sent_per_opportunity(self, store):
        a = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        b = quote_store.create_quote("opp-1", Decimal("2000"), now=NOW)
        _send(a.id)
        with pytest.raises(QuoteTransitionError) as exc_info:
            _send(b.id)
        assert "Ya hay una cotización enviada" in exc_info.value.reason
        assert quote_store.find_quote(b.id).estado == BORRADOR

    def test_other_opportunity_not_blocked(self, store):
        a = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        b = quote_store.create_quote("opp-2", Decimal("2000"), now=NOW)
        _send(a.id)
        assert _send(b.id).estado == ENVIADA

    def test_failed_action_leaves_file_untouched(self, store):
        q = quote_store.create_quote("opp-1", now=NOW)
        before = store.read_bytes()
        with pytest.raises(QuoteTransitionError):
            _send(q.id)
        assert store.read_bytes() == before


class TestResolve:
    def test_accept_is_terminal(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        _send(q.id)
        accepted = quote_store.apply_action(q.id, lifecycle.ACCEPT)
        assert accepted.estado == ACEPTADA
        for action in (lifecycle.SEND, lifecycle.REJECT, lifecycle.REOPEN, lifecycle.ACCEPT):
            with pytest.raises(QuoteTransitionError):
                quote_store.apply_action(q.id, action)

    def test_reject_then_reopen(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        _send(q.id)
        assert quote_store.apply_action(q.id, lifecycle.REJECT).estado == RECHAZADA
        assert quote_store.apply_action(q.id, lifecycle.REOPEN).estado == ENVIADA

    def test_reopen_starts_new_validity(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=datetime(2026, 1, 5, tzinfo=COT))
        _send(q.id, now=datetime(2026, 1, 5, tzinfo=COT))
        quote_store.apply_action(q.id, lifecycle.REJECT)
        later = datetime(2026, 3, 1, 12, 0, tzinfo=COT)
        reopened = quote_store.apply_action(q.id, lifecycle.REOPEN, now=later)
        assert reopened.fecha_validez == "2026-03-31"
        assert reopened.fecha_envio == "2026-01-05T00:00:00-05:00"
        assert quote_store.expire_overdue(later) == []
        assert quote_store.find_quote(q.id).estado == ENVIADA

    def test_reject_reason_kept_until_reopen(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        _send(q.id)
        rejected = quote_store.apply_action(q.id, lifecycle.REJECT, motivo="  Muy caro ")
        assert rejected.motivo_rechazo == "Muy caro"
        assert quote_store.find_quote(q.id).motivo_rechazo == "Muy caro"
        reopened = quote_store.apply_action(q.id, lifecycle.REOPEN, now=NOW)
        assert reopened.motivo_rechazo is None
        assert "motivo_rechazo" not in json.loads(store.read_text(encoding="utf-8"))[0]

    def test_reject_without_reason(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        _send(q.id)
        assert quote_store.apply_action(q.id, lifecycle.REJECT, motivo="  ").motivo_rechazo is None

    def test_reject_frees_the_opportunity(self, store):
        a = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        b = quote_store.create_quote("opp-1", Decimal("2000"), now=NOW)
        _send(a.id)
        quote_store.apply_action(a.id, lifecycle.REJECT)
        assert _send(b.id).estado == ENVIADA
        # a cannot come back while b is out
        with pytest.raises(QuoteTransitionError, match="Resuélvela primero"):
            quote_store.apply_action(a.id, lifecycle.REOPEN)

    def test_accept_draft_rejected(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        with pytest.raises(QuoteTransitionError, match="aceptar"):
            quote_store.apply_action(q.id, lifecycle.ACCEPT)

    def test_unknown_action(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        with pytest.raises(QuoteTransitionError, match="desconocida"):
            quote_store.apply_action(q.id, "archive")

    def test_unknown_quote(self, store):
        with pytest.raises(QuoteNotFoundError):
            quote_store.apply_action("missing", lifecycle.SEND)


class TestDuplicate:
    def test_copy_is_new_draft(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), "Fase 1", now=NOW)
        _send(q.id)
        copy = quote_store.duplicate_quote(q.id, now=NOW)
        assert copy.id != q.id
        assert copy.estado == BORRADOR
        assert copy.oportunidad_id == "opp-1"
        assert copy.valor_total == Decimal("1000")
        assert copy.descripcion == "Fase 1"
        assert copy.duplicada_de == q.id
        assert copy.consecutivo == "COT-2026-0002"
        assert copy.fecha_validez is None

    def test_unknown_quote(self, store):
        with pytest.raises(QuoteNotFoundError):
            quote_store.duplicate_quote("missing")


class TestExpire:
    def test_expires_after_validity(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        _send(q.id)
        assert quote_store.expire_overdue(datetime(2026, 4, 1, 23, 0, tzinfo=COT)) == []
        expired = quote_store.expire_overdue(datetime(2026, 4, 2, 0, 1, tzinfo=COT))
        assert [e.id for e in expired] == [q.id]
        assert quote_store.find_quote(q.id).estado == VENCIDA

    def test_only_sent_quotes_expire(self, store):
        draft = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        sent = quote_store.create_quote("opp-2", Decimal("1000"), now=NOW)
        _send(sent.id)
        quote_store.apply_action(sent.id, lifecycle.REJECT)
        assert quote_store.expire_overdue(datetime(2027, 1, 1, tzinfo=COT)) == []
        assert quote_store.find_quote(draft.id).estado == BORRADOR
        assert quote_store.find_quote(sent.id).estado == RECHAZADA

    def test_expired_quote_is_terminal(self, store):
        q = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        _send(q.id)
        quote_store.expire_overdue(datetime(2027, 1, 1, tzinfo=COT))
        with pytest.raises(QuoteTransitionError):
            quote_store.apply_action(q.id, lifecycle.ACCEPT)


class TestCorruptStore:
    def test_corrupt_file_is_backed_up(self, store):
        store.write_text("{not json", encoding="utf-8")
        assert quote_store.list_quotes() == []
        assert not store.exists()
        backups = list(store.parent.glob("cotizaciones.json.corrupt.*"))
        assert len(backups) == 1
        assert backups[0].read_text(encoding="utf-8") == "{not json"

    def test_health_reports_corruption(self, store):
        store.write_text("{not json", encoding="utf-8")
        health = quote_store.check_store_health()
        assert health.store_ok is False
        # Health check is read-only
        assert store.exists()

    def test_health_lists_backups_and_conflicts(self, store):
        a = quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        quote_store.create_quote("opp-1", Decimal("1000"), now=NOW)
        _send(a.id)
        # Simulate a file edited by hand with two sent quotes
        entries = json.loads(store.read_text(encoding="utf-8"))
        for e in entries:
            e["estado"] = ENVIADA
        store.write_text(json.dumps(entries), encoding="utf-8")
        (store.parent / "cotizaciones.json.corrupt.20260101T000000").write_text("x")

        health = quote_store.check_store_health()
        assert health.store_ok is True
        assert health.quote_count == 2
        assert health.conflicting_opportunities == ["opp-1"]
        assert len(health.corrupt_backups) == 1

    def test_health_of_missing_store(self, store):
        health = quote_store.check_store_health()
        assert health.store_ok is True
        assert health.quote_count == 0
        assert health.corrupt_backups == []
