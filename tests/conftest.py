import json
import shutil
import logging
from pathlib import Path

import pytest

FIXTURES = Path(__file__).resolve().parent / "fixtures"

COLUMBIA_PARCEL = "35-4S-16-03099-000"
CHARLOTTE_PARCEL = "402214305007"


def read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def dump_json(path, data):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep .env files, logs and earlier runs out of the tests"""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in ("OWNER_FALLBACK", "REPAIR_DIGITS", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("LOGS_DIR", str(tmp_path / "logs"))

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def columbia_html():
    return (FIXTURES / "columbia_sample.html").read_text(encoding="utf-8")


@pytest.fixture
def charlotte_html():
    return (FIXTURES / "charlotte_sample.html").read_text(encoding="utf-8")


@pytest.fixture
def make_parcel(tmp_path):
    """Create a parcel directory holding a fixture page and optional sidecars"""

    def _make(fixture_name, parcel_id, owner_data=None, unnormalized=None, seed=None, html=None):
        parcel_dir = tmp_path / "parcels" / parcel_id
        parcel_dir.mkdir(parents=True)
        if html is None:
            shutil.copy(FIXTURES / fixture_name, parcel_dir / "input.html")
        else:
            (parcel_dir / "input.html").write_text(html, encoding="utf-8")
        if owner_data is not None:
            (parcel_dir / "owners").mkdir()
            dump_json(parcel_dir / "owners" / "owner_data.json", owner_data)
        if unnormalized is not None:
            dump_json(parcel_dir / "unnormalized_address.json", unnormalized)
        if seed is not None:
            dump_json(parcel_dir / "property_seed.json", seed)
        return parcel_dir

    return _make
