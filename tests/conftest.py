"""
Shared fixtures: in-memory stores standing in for the database, and a
TestClient wired to them through dependency overrides.
"""
import os

os.environ.setdefault("CRON_SECRET", "test-cron-secret-0123456789")
os.environ.setdefault("RATELIMIT_ENABLED", "false")
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("APP_TIMEZONE", "")

import uuid
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from budget_api.core.deps import get_template_store, get_transaction_store
from budget_api.main import app
from budget_api.schemas.recurring import RecurringTemplate
from budget_api.services.stores import StoreError

CRON_SECRET = os.environ["CRON_SECRET"]


class InMemoryTemplateStore:
    def __init__(self):
        self.rows: dict[uuid.UUID, RecurringTemplate] = {}
        self.calls: list[tuple] = []
        self.list_error: str | None = None
        self.update_errors: dict[uuid.UUID, str] = {}

    def add(self, template: RecurringTemplate) -> RecurringTemplate:
        self.rows[template.id] = template
        return template

    def list_due(self, today):
        self.calls.append(("list_due", today))
        if self.list_error:
            raise StoreError(self.list_error)
        return [
            t for t in self.rows.values()
            if t.is_active and t.auto_create and t.next_occurrence <= today
        ]

    def list_for_user(self, user_id):
        self.calls.append(("list_for_user", user_id))
        rows = [t for t in self.rows.values() if t.user_id == user_id]
        return sorted(rows, key=lambda t: t.next_occurrence)

    def get(self, template_id):
        self.calls.append(("get", template_id))
        return self.rows.get(template_id)

    def create(self, fields):
        self.calls.append(("create", fields))
        return self.add(RecurringTemplate(id=uuid.uuid4(), **fields))

    def update(self, template_id, fields):
        self.calls.append(("update", template_id, dict(fields)))
        if template_id in self.update_errors:
            raise StoreError(self.update_errors[template_id])
        self.rows[template_id] = self.rows[template_id].model_copy(update=fields)

    def delete(self, template_id):
        self.calls.append(("delete", template_id))
        return self.rows.pop(template_id, None) is not None


class InMemoryTransactionStore:
    def __init__(self):
        self.rows: list[dict] = []
        self.calls: list[tuple] = []
        # keyed by account_id so a test can target one template
        self.insert_errors: dict[uuid.UUID, str] = {}
        self.explode_on: set[uuid.UUID] = set()

    def insert(self, row):
        self.calls.append(("insert", row))
        if row["account_id"] in self.explode_on:
            raise RuntimeError("connection reset by peer")
        if row["account_id"] in self.insert_errors:
            raise StoreError(self.insert_errors[row["account_id"]])
        txn_id = uuid.uuid4()
        self.rows.append({"id": txn_id, **row})
        return txn_id


@pytest.fixture
def template_store():
    return InMemoryTemplateStore()


@pytest.fixture
def transaction_store():
    return InMemoryTransactionStore()


@pytest.fixture
def make_template(template_store):
    """Build a template, register it in the template store and return it."""
    def _make(**overrides) -> RecurringTemplate:
        fields = {
            "id": uuid.uuid4(),
            "user_id": uuid.UUID("00000000-0000-0000-0000-000000000001"),
            "account_id": uuid.uuid4(),
            "template_name": "Netflix",
            "amount": Decimal("186000.00"),
            "type": "expense",
            "category": "Entertainment",
            "subcategory": "Streaming",
            "description": "Monthly subscription",
            "merchant": "Netflix",
            "frequency": "monthly",
            "custom_interval_days": None,
            "start_date": date(2024, 1, 15),
            "end_date": None,
            "next_occurrence": date(2024, 3, 15),
            "last_generated": None,
            "is_active": True,
            "auto_create": True,
        }
        fields.update(overrides)
        return template_store.add(RecurringTemplate(**fields))
    return _make


@pytest.fixture
def client(template_store, transaction_store):
    app.dependency_overrides[get_template_store] = lambda: template_store
    app.dependency_overrides[get_transaction_store] = lambda: transaction_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {CRON_SECRET}"}
