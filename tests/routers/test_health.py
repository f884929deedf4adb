from budget_api.core.database import get_db
from budget_api.main import app


class FakeSession:
    def __init__(self):
        self.statements = []

    def execute(self, statement):
        self.statements.append(str(statement))


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_health_db(self, client):
        session = FakeSession()
        app.dependency_overrides[get_db] = lambda: session
        resp = client.get("/health/db")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "database": "connected"}
        assert session.statements == ["SELECT 1"]
