from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import yaml

from honorarios.cli import _init_config, _preflight, _print_breakdown, main


class TestMain:
    @patch("honorarios.tui.app.HonorariosApp")
    @patch("honorarios.cli._setup_logging")
    @patch("honorarios.cli._preflight", return_value=True)
    def test_launches_tui(self, mock_preflight, mock_logging, mock_app_cls):
        mock_app = MagicMock()
        mock_app_cls.return_value = mock_app
        with patch("sys.argv", ["honorarios"]):
            main()
        mock_preflight.assert_called_once()
        mock_logging.assert_called_once_with(to_file=True)
        mock_app_cls.assert_called_once()
        mock_app.run.assert_called_once()

    @patch("honorarios.cli._init_config")
    def test_init_dispatches(self, mock_init):
        with patch("sys.argv", ["honorarios", "init"]):
            main()
        mock_init.assert_called_once()

    @patch("honorarios.cli._preflight", return_value=False)
    def test_exit_1_on_failure(self, mock_preflight):
        with patch("sys.argv", ["honorarios"]), pytest.raises(SystemExit, match="1"):
            main()

    @patch("honorarios.cli._setup_logging")
    @patch("honorarios.cli._print_breakdown", return_value=0)
    def test_calcular_dispatches(self, mock_print, mock_logging):
        with patch("sys.argv", ["honorarios", "calcular", "5000000", "acme"]), pytest.raises(
            SystemExit
        ) as exc_info:
            main()
        assert exc_info.value.code == 0
        mock_print.assert_called_once_with("5000000", "acme")

    @patch("honorarios.cli._setup_logging")
    @patch("honorarios.cli._print_breakdown", return_value=0)
    def test_calcular_without_client(self, mock_print, mock_logging):
        with patch("sys.argv", ["honorarios", "calcular", "5000000"]), pytest.raises(SystemExit):
            main()
        mock_print.assert_called_once_with("5000000", None)

    def test_calcular_usage(self, capsys):
        with patch("sys.argv", ["honorarios", "calcular"]), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2
        assert "Uso: honorarios calcular" in capsys.readouterr().err


class TestPrintBreakdown:
    def test_with_client(self, config_dir, data_dir, monkeypatch, capsys):
        monkeypatch.delenv("HONORARIOS_FISCAL_YEAR", raising=False)
        assert _print_breakdown("5.000.000", "acme") == 0
        out = capsys.readouterr().out
        assert "Cliente: ACME S.A.S. (800197268-4)" in out
        assert "$ 5.950.000" in out
        assert "-$ 550.000" in out
        assert "-$ 740.800" in out
        assert "$ 5.209.200" in out
        assert "Régimen Simple" in out
        assert "Cálculo estimado" not in out
        assert "Consulta tu contador" in out

    def test_without_client_is_estimated(self, config_dir, data_dir, monkeypatch, capsys):
        monkeypatch.delenv("HONORARIOS_FISCAL_YEAR", raising=False)
        assert _print_breakdown("5000000", None) == 0
        out = capsys.readouterr().out
        assert "Cálculo estimado" in out
        assert "Sin cliente" in out

    def test_invalid_amount(self, config_dir, capsys):
        assert _print_breakdown("abc", None) == 2
        assert "invalido" in capsys.readouterr().err

    def test_amount_above_max(self, config_dir, capsys):
        assert _print_breakdown("1e29", None) == 2
        assert "maximo" in capsys.readouterr().err

    def test_unknown_client(self, config_dir, data_dir, capsys):
        assert _print_breakdown("5000000", "globex") == 1
        assert "cliente no encontrado: globex" in capsys.readouterr().err

    def test_non_withholding_client(self, config_dir, data_dir, monkeypatch, capsys):
        monkeypatch.delenv("HONORARIOS_FISCAL_YEAR", raising=False)
        (config_dir / "clients" / "vecino.yaml").write_text(
            yaml.dump({"nombre": "Vecino", "nit": "1020304050", "tipo_persona": "natural"})
        )
        assert _print_breakdown("5000000", "vecino") == 0
        out = capsys.readouterr().out
        assert "no practica retenciones" in out
        assert "NO es toda tuya" in out


class TestPreflight:
    def test_preflight_ok(self, monkeypatch, tmp_path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "perfil_fiscal.yaml").write_text(yaml.dump({"tipo_persona": "natural"}))
        data_dir = tmp_path / "data"
        monkeypatch.setattr("honorarios.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("honorarios.config.get_data_dir", lambda: data_dir)
        assert _preflight() is True
        assert data_dir.is_dir()

    def test_preflight_no_config(self, monkeypatch, tmp_path, capsys):
        config_dir = tmp_path / "missing"
        data_dir = tmp_path / "data"
        monkeypatch.setattr("honorarios.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("honorarios.config.get_data_dir", lambda: data_dir)
        assert _preflight() is False
        assert "honorarios init" in capsys.readouterr().out

    def test_preflight_no_profile(self, monkeypatch, tmp_path, capsys):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        data_dir = tmp_path / "data"
        monkeypatch.setattr("honorarios.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("honorarios.config.get_data_dir", lambda: data_dir)
        assert _preflight() is False
        assert "perfil_fiscal.yaml" in capsys.readouterr().out


class TestInitConfig:
    def test_copies_templates(self, monkeypatch, tmp_path):
        config_dir = tmp_path / "config"
        data_dir = tmp_path / "data"
        monkeypatch.setattr("honorarios.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("honorarios.config.get_data_dir", lambda: data_dir)
        _init_config()
        assert (config_dir / "perfil_fiscal.yaml.example").exists()
        assert (config_dir / "clients" / "acme.yaml.example").exists()
        assert (config_dir / "fiscal_params" / "2026.yaml.example").exists()
        assert data_dir.exists()

    def test_templates_parse(self, monkeypatch, tmp_path):
        config_dir = tmp_path / "config"
        monkeypatch.setattr("honorarios.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("honorarios.config.get_data_dir", lambda: tmp_path / "data")
        _init_config()
        profile = yaml.safe_load((config_dir / "perfil_fiscal.yaml.example").read_text(encoding="utf-8"))
        assert profile["tipo_persona"] in ("natural", "juridica")
        client = yaml.safe_load((config_dir / "clients" / "acme.yaml.example").read_text(encoding="utf-8"))
        assert client["nit"] == "800197268-4"

    def test_skips_existing(self, monkeypatch, tmp_path, capsys):
        config_dir = tmp_path / "config"
        config_dir.mkdir(parents=True)
        (config_dir / "perfil_fiscal.yaml.example").write_text("existing")
        data_dir = tmp_path / "data"
        monkeypatch.setattr("honorarios.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("honorarios.config.get_data_dir", lambda: data_dir)
        _init_config()
        # perfil_fiscal.yaml.example should not be overwritten
        assert (config_dir / "perfil_fiscal.yaml.example").read_text() == "existing"
        assert "ya existe" in capsys.readouterr().out

    def test_nothing_new(self, monkeypatch, tmp_path, capsys):
        config_dir = tmp_path / "config"
        monkeypatch.setattr("honorarios.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("honorarios.config.get_data_dir", lambda: tmp_path / "data")
        _init_config()
        capsys.readouterr()
        _init_config()
        assert "Ningún archivo nuevo" in capsys.readouterr().out
