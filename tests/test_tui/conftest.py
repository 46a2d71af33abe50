from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from honorarios.config import COT


@pytest.fixture
def tui_env(config_dir, data_dir, monkeypatch):
    """Real config and data dirs in tmp_path so the TUI can launch without user files."""
    monkeypatch.delenv("HONORARIOS_FISCAL_YEAR", raising=False)
    return config_dir, data_dir


@pytest.fixture
def seeded_quotes(tui_env):
    """Three drafts of two opportunities, oldest first."""
    from honorarios.utils.quote_store import create_quote

    return [
        create_quote("web-acme", Decimal("5000000"), "Sitio web", now=datetime(2026, 1, 10, tzinfo=COT)),
        create_quote("web-acme", Decimal("4500000"), "Sitio web v2", now=datetime(2026, 1, 11, tzinfo=COT)),
        create_quote("app-globex", Decimal("0"), "", now=datetime(2026, 1, 12, tzinfo=COT)),
    ]


async def _settle(app, pilot, rounds: int = 3) -> None:
    for _ in range(rounds):
        await app.workers.wait_for_complete()
        await pilot.pause()


@pytest.fixture
def settle():
    """Await this to let threaded workers (and the workers they start) finish."""
    return _settle
