from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from filelock import FileLock

from honorarios import config as _config

logger = logging.getLogger(__name__)


def _sequence_file() -> Path:
    return _config.get_sequence_path()


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during sequence read-modify-write."""
    sf = _sequence_file()
    sf.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(sf.with_suffix(".lock"))
    with lock:
        yield


def _load() -> dict[str, int]:
    sf = _sequence_file()
    if not sf.exists():
        return {}
    try:
        return json.loads(sf.read_text())
    except (json.JSONDecodeError, ValueError):
        logger.warning("Archivo de consecutivos corrupto, reiniciando: %s", sf, exc_info=True)
        return {}


def _save(data: dict[str, int]) -> None:
    sf = _sequence_file()
    sf.parent.mkdir(parents=True, exist_ok=True)
    tmp = sf.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, indent=2))
    os.replace(tmp, sf)


def format_quote_number(year: int, n: int) -> str:
    return f"COT-{year}-{n:04d}"


def _year(year: int | None) -> int:
    return year or datetime.now(_config.COT).year


def current_quote_number(year: int | None = None) -> int:
    with _locked():
        return _load().get(str(_year(year)), 0)


def next_quote_number(year: int | None = None) -> str:
    """Reserve and return the next quote number for *year* (COT-YYYY-NNNN)."""
    y = _year(year)
    with _locked():
        data = _load()
        data[str(y)] = data.get(str(y), 0) + 1
        _save(data)
        return format_quote_number(y, data[str(y)])


def peek_next_quote_number(year: int | None = None) -> str:
    """Return the next quote number without persisting it."""
    y = _year(year)
    with _locked():
        return format_quote_number(y, _load().get(str(y), 0) + 1)


def set_quote_number(value: int, year: int | None = None) -> None:
    with _locked():
        data = _load()
        data[str(_year(year))] = value
        _save(data)
