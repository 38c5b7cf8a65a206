import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Engine SQLite pour tests AVANT d'importer app
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"
test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# PATCH: remplacer le engine et SessionLocal du core.database AVANT d'importer app
import app.core.database
app.core.database.engine = test_engine
app.core.database.SessionLocal = TestingSessionLocal

from app.core.database import Base
from app.main import app as fastapi_app


@pytest.fixture(autouse=True)
def setup_teardown(monkeypatch):
    """Recrée la DB et vide les sessions en mémoire autour de chaque test"""
    monkeypatch.delenv("CHAT_API_KEY", raising=False)
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    fastapi_app.state.sessions.clear()
    yield
    fastapi_app.state.sessions.clear()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client():
    """Client de test FastAPI"""
    from fastapi.testclient import TestClient
    return TestClient(fastapi_app)


@pytest.fixture
def chat_env(monkeypatch):
    monkeypatch.setenv("CHAT_API_KEY", "app-test-key")
    monkeypatch.setenv("CHAT_API_URL", "https://chat.example.test/v1")
    monkeypatch.setenv("CHAT_TIMEOUT_SECONDS", "30")

