import os
import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

# Base SQLite de test AVANT d'importer app (le Store est construit à l'import).
# Toujours forcée: les fixtures vident la base à chaque test
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from app.main import app

store = app.state.store


@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    store.drop_schema()
    store.create_schema()
    # les connexions SQLite restées dans le pool gardent un cache de schéma périmé
    store.engine.dispose()
    yield
    store.drop_schema()


@pytest.fixture
def client():
    """Client de test FastAPI"""
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = store.session()
    yield db
    db.close()


@pytest.fixture
def hub():
    return app.state.hub


@pytest.fixture
def make_task(client):
    """Crée une tâche via l'API et retourne le JSON"""
    def _make(title, day="monday", **extra):
        response = client.post("/api/tasks", json={"title": title, "day": day, **extra})
        assert response.status_code == 200
        return response.json()["task"]
    return _make


@pytest.fixture
def app_store():
    return store
