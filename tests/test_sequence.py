from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from honorarios.utils import sequence


def test_sequence_increment(tmp_path: Path):
    with patch("honorarios.config.get_data_dir", return_value=tmp_path):
        assert sequence.current_quote_number(2026) == 0
        assert sequence.next_quote_number(2026) == "COT-2026-0001"
        assert sequence.next_quote_number(2026) == "COT-2026-0002"
        assert sequence.current_quote_number(2026) == 2


def test_set_sequence(tmp_path: Path):
    with patch("honorarios.config.get_data_dir", return_value=tmp_path):
        sequence.set_quote_number(10, 2026)
        assert sequence.current_quote_number(2026) == 10
        assert sequence.next_quote_number(2026) == "COT-2026-0011"


def test_peek_does_not_persist(tmp_path: Path):
    with patch("honorarios.config.get_data_dir", return_value=tmp_path):
        assert sequence.next_quote_number(2026) == "COT-2026-0001"
        assert sequence.peek_next_quote_number(2026) == "COT-2026-0002"
        assert sequence.peek_next_quote_number(2026) == "COT-2026-0002"
        assert sequence.current_quote_number(2026) == 1


def test_per_year_isolation(tmp_path: Path):
    """Numbering restarts every year."""
    with patch("honorarios.config.get_data_dir", return_value=tmp_path):
        sequence.next_quote_number(2026)
        sequence.next_quote_number(2026)
        assert sequence.next_quote_number(2027) == "COT-2027-0001"
        assert sequence.current_quote_number(2026) == 2

        data = json.loads((tmp_path / "consecutivos.json").read_text())
        assert data == {"2026": 2, "2027": 1}


def test_corrupt_file_restarts(tmp_path: Path):
    (tmp_path / "consecutivos.json").write_text("{oops")
    with patch("honorarios.config.get_data_dir", return_value=tmp_path):
        assert sequence.next_quote_number(2026) == "COT-2026-0001"


def test_format_pads_to_four_digits():
    assert sequence.format_quote_number(2026, 7) == "COT-2026-0007"
    assert sequence.format_quote_number(2026, 12345) == "COT-2026-12345"
