import os
import tempfile

# settings are read at import time, so point them at a throwaway store first
_TMP = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["LOCKS_DIR"] = os.path.join(_TMP, "locks")

import pytest
from fastapi.testclient import TestClient

from marketplace.db import init_db
from marketplace.main import app


@pytest.fixture(autouse=True)
def fresh_db():
    init_db(reset=True)
    yield


@pytest.fixture
def client():
    return TestClient(app)
