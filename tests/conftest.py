import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENVIRONMENT", "test")

from pulse.core.config import Settings
from pulse.core.metrics import Metrics
from pulse.main import create_app


@pytest.fixture
def settings():
    return Settings(environment="test", _env_file=None)


@pytest.fixture
def metrics():
    return Metrics()


@pytest.fixture
def app(settings, metrics):
    return create_app(settings, metrics)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
