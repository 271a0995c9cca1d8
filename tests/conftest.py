"""Pytest configuration and fixtures for RefNet CLI tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, List

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def temp_config(temp_dir: Path, monkeypatch) -> Path:
    """Point the settings file at a temporary location for every test."""
    config_file = temp_dir / "config.toml"
    monkeypatch.setattr("refnet_cli.config.BASE_DIR", temp_dir)
    monkeypatch.setattr("refnet_cli.config.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def sample_records() -> List[Dict]:
    """A small network using the key spellings of several intake sources.

    Shape::

        01 Rodrigo
        ├── 02 Vanessa
        │   ├── Ana (lead)
        │   └── Bia (lead)
        └── 07 Eva
        [ZZZ] (virtual)
        ├── Caio (lead)
        └── Duda (lead)
    """
    return [
        {"id": 1, "nome": "Rodrigo", "tipo": "recrutador", "codigoProprio": "01"},
        {"id": 2, "name": "Vanessa", "type": "recruiter", "own_code": "02", "recrutadorCodigo": "01"},
        {"id": 3, "nome": "Ana", "telefone": "87 99990000", "payload": {"traffic_source": "02"}},
        {"id": 4, "name": "Bia", "phone": "81 98880000", "city": "Recife", "ref": "2"},
        {"id": 5, "nome": "Caio", "referral": "ZZZ"},
        {"id": 6, "nome": "Duda", "recrutadorCodigo": " zzz "},
        {"id": 7, "nome": "Eva", "codigo_recrutador": "7", "recrutadorCodigo": "1"},
    ]


@pytest.fixture
def records_file(temp_dir: Path, sample_records: List[Dict]) -> Path:
    """Write the sample records to a JSON file."""
    path = temp_dir / "records.json"
    path.write_text(json.dumps(sample_records), encoding="utf-8")
    return path
