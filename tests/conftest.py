"""
Shared pytest fixtures for draw engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips exhaustive bracket sizes)
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from draws.models import Competitor
from draws.storage import YamlEventStore


def make_competitors(count, seeded=0):
    """Competitors c1..cN; the first `seeded` of them get seeds 1..seeded."""
    return [
        Competitor(id=f"c{i}", name=f"Competitor {i}", seed=i if i <= seeded else None)
        for i in range(1, count + 1)
    ]


@pytest.fixture
def competitors():
    """Six competitors, two of them seeded."""
    return make_competitors(6, seeded=2)


@pytest.fixture
def store(tmp_path):
    """Event store in a temporary data directory."""
    return YamlEventStore(str(tmp_path / "data"))


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the web app at a temporary data directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return data_dir


@pytest.fixture
def client(temp_data_dir):
    """Create a test client backed by the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
