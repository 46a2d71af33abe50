from __future__ import annotations

import logging
import os
from datetime import timedelta, timezone
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

APP_NAME = "honorarios"

logger = logging.getLogger(__name__)


def _resolve_config_dir_for_dotenv() -> Path | None:
    """Resolve config dir for .env loading without depending on env vars from .env itself.

    Uses the same 3-tier resolution as _resolve_dir but only checks sources
    available before .env is loaded (env var set in shell, dev layout).
    Returns None if only platformdirs would resolve and the dir does not exist yet.
    """
    from_env = os.environ.get("HONORARIOS_CONFIG_DIR")
    if from_env:
        return Path(from_env)
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / "config"
    if candidate.is_dir():
        return candidate
    pd = Path(platformdirs.user_config_dir(APP_NAME))
    if pd.is_dir():
        return pd
    return None


# Load .env: cwd first (highest priority), then config dir (won't override)
load_dotenv()
_cfg_dir = _resolve_config_dir_for_dotenv()
if _cfg_dir is not None:
    load_dotenv(_cfg_dir / ".env")


def _resolve_dir(env_var: str, default_subdir: str, kind: str) -> Path:
    """Resolve a directory from env var, repo layout, or platform default.

    Priority: 1) env var, 2) dev repo layout, 3) platformdirs user directory.
    """
    from_env = os.environ.get(env_var)
    if from_env:
        return Path(from_env)
    # Development layout: src/honorarios/config.py -> ../../.. = project root
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / default_subdir
    if candidate.is_dir():
        return candidate
    if kind == "config":
        return Path(platformdirs.user_config_dir(APP_NAME))
    return Path(platformdirs.user_data_dir(APP_NAME))


def get_config_dir() -> Path:
    """Resolve config directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("HONORARIOS_CONFIG_DIR", "config", kind="config")


def get_data_dir() -> Path:
    """Resolve data directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("HONORARIOS_DATA_DIR", "data", kind="data")


COT = timezone(timedelta(hours=-5))

DEFAULT_FISCAL_YEAR = 2026

QUOTE_VALIDITY_DAYS = 30


def get_fiscal_year() -> int:
    """Return the fiscal year whose parameter table applies (HONORARIOS_FISCAL_YEAR)."""
    raw = os.environ.get("HONORARIOS_FISCAL_YEAR")
    if not raw:
        return DEFAULT_FISCAL_YEAR
    try:
        return int(raw)
    except ValueError:
        logger.warning("HONORARIOS_FISCAL_YEAR invalido: %r, usando %d", raw, DEFAULT_FISCAL_YEAR)
        return DEFAULT_FISCAL_YEAR


def get_log_level() -> str:
    return os.environ.get("HONORARIOS_LOG_LEVEL", "WARNING").upper()


# --- YAML config ---


def load_yaml(path: Path) -> dict:
    """Load and parse a YAML file, returning the top-level dict."""
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _save_yaml(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(
        yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False),
        encoding="utf-8",
    )
    os.replace(tmp, path)
    return path


def load_fiscal_profile() -> dict:
    """Load the issuer fiscal profile from config/perfil_fiscal.yaml."""
    return load_yaml(get_config_dir() / "perfil_fiscal.yaml")


def save_fiscal_profile(data: dict) -> Path:
    """Save the issuer fiscal profile to config/perfil_fiscal.yaml (atomic write)."""
    return _save_yaml(get_config_dir() / "perfil_fiscal.yaml", data)


def load_client(name: str) -> dict:
    """Load a client configuration from config/clients/{name}.yaml."""
    return load_yaml(get_config_dir() / "clients" / f"{name}.yaml")


def list_clients() -> list[str]:
    """Return sorted list of client names (YAML file stems) from config/clients/."""
    clients_dir = get_config_dir() / "clients"
    if not clients_dir.exists():
        return []
    return sorted(f.stem for f in clients_dir.glob("*.yaml"))


def save_client(name: str, data: dict) -> Path:
    """Save a client configuration to config/clients/{name}.yaml (atomic write)."""
    return _save_yaml(get_config_dir() / "clients" / f"{name}.yaml", data)


def delete_client(name: str) -> None:
    """Delete a client configuration file config/clients/{name}.yaml."""
    path = get_config_dir() / "clients" / f"{name}.yaml"
    path.unlink()


def load_fiscal_params(year: int | None = None) -> dict | None:
    """Load the parameter table for *year* from config/fiscal_params/{year}.yaml.

    Returns None when the year has no table on disk; callers fall back to the
    bundled defaults.
    """
    year = year or get_fiscal_year()
    path = get_config_dir() / "fiscal_params" / f"{year}.yaml"
    if not path.exists():
        return None
    return load_yaml(path)


def get_quotes_path() -> Path:
    return get_data_dir() / "cotizaciones.json"


def get_sequence_path() -> Path:
    return get_data_dir() / "consecutivos.json"
