from __future__ import annotations

from decimal import Decimal

import pytest
import yaml

from honorarios.models.client import DEFAULT_CLIENT_PROFILE, ClientProfile
from honorarios.models.profile import FiscalProfile

# --- Fiscal profile fixtures ---


@pytest.fixture
def profile_dict() -> dict:
    return {
        "tipo_persona": "natural",
        "regimen": "ordinario",
        "declarante": True,
        "responsable_iva": True,
        "autorretenedor": False,
        "ciudad_ica": "Bogotá",
        "tarifa_ica": 9.66,
    }


@pytest.fixture
def issuer(profile_dict: dict) -> FiscalProfile:
    return FiscalProfile.from_dict(profile_dict)


@pytest.fixture
def juridical_issuer(profile_dict: dict) -> FiscalProfile:
    return FiscalProfile.from_dict({**profile_dict, "tipo_persona": "juridica"})


# --- Client fixtures ---


@pytest.fixture
def client_dict() -> dict:
    return {
        "nombre": "ACME S.A.S.",
        "nit": "800197268-4",
        "tipo_persona": "juridica",
        "agente_retenedor": True,
        "gran_contribuyente": False,
        "regimen": "ordinario",
    }


@pytest.fixture
def company() -> ClientProfile:
    return DEFAULT_CLIENT_PROFILE


@pytest.fixture
def private_person() -> ClientProfile:
    """Natural person client that does not withhold."""
    return ClientProfile(
        tipo_persona="natural",
        agente_retenedor=False,
        gran_contribuyente=False,
        regimen="ordinario",
    )


@pytest.fixture
def gross() -> Decimal:
    return Decimal("5000000")


# --- Config / data dir fixtures ---


@pytest.fixture
def config_dir(tmp_path, monkeypatch, profile_dict, client_dict):
    cfg = tmp_path / "config"
    cfg.mkdir()
    (cfg / "perfil_fiscal.yaml").write_text(yaml.dump(profile_dict, allow_unicode=True), encoding="utf-8")
    clients = cfg / "clients"
    clients.mkdir()
    (clients / "acme.yaml").write_text(yaml.dump(client_dict, allow_unicode=True), encoding="utf-8")
    monkeypatch.setenv("HONORARIOS_CONFIG_DIR", str(cfg))
    return cfg


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    d = tmp_path / "data"
    d.mkdir()
    monkeypatch.setenv("HONORARIOS_DATA_DIR", str(d))
    return d
