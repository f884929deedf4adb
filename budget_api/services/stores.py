"""
Store collaborators for the recurring-transaction generator.

The generator only talks to the two protocols below. The SQLAlchemy
implementations wrap one session each, commit every write on its own, and
turn driver errors into `StoreError` after rolling back, so one failed
row never poisons the writes that follow it.
"""
import logging
import uuid
from datetime import date
from typing import Any, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_api.models.recurring import RecurringTransaction
from budget_api.models.transaction import Transaction
from budget_api.schemas.recurring import RecurringTemplate

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A store read or write failed; the message is safe to report."""


class TemplateStore(Protocol):
    def list_due(self, today: date) -> list[RecurringTemplate]: ...

    def list_for_user(self, user_id: uuid.UUID) -> list[RecurringTemplate]: ...

    def get(self, template_id: uuid.UUID) -> RecurringTemplate | None: ...

    def create(self, fields: dict[str, Any]) -> RecurringTemplate: ...

    def update(self, template_id: uuid.UUID, fields: dict[str, Any]) -> None: ...

    def delete(self, template_id: uuid.UUID) -> bool: ...


class TransactionStore(Protocol):
    def insert(self, row: dict[str, Any]) -> uuid.UUID: ...


def _message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


# ─── SQLAlchemy implementations ───────────────────────────────────────────────

class SqlTemplateStore:
    def __init__(self, db: Session):
        self.db = db

    def list_due(self, today: date) -> list[RecurringTemplate]:
        try:
            rows = self.db.execute(
                select(RecurringTransaction).where(
                    RecurringTransaction.is_active == True,    # noqa: E712
                    RecurringTransaction.auto_create == True,  # noqa: E712
                    RecurringTransaction.next_occurrence <= today,
                )
            ).scalars().all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(_message(exc)) from exc
        return [RecurringTemplate.model_validate(r) for r in rows]

    def list_for_user(self, user_id: uuid.UUID) -> list[RecurringTemplate]:
        try:
            rows = self.db.execute(
                select(RecurringTransaction)
                .where(RecurringTransaction.user_id == user_id)
                .order_by(RecurringTransaction.next_occurrence)
            ).scalars().all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(_message(exc)) from exc
        return [RecurringTemplate.model_validate(r) for r in rows]

    def get(self, template_id: uuid.UUID) -> RecurringTemplate | None:
        try:
            rec = self.db.get(RecurringTransaction, template_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(_message(exc)) from exc
        return RecurringTemplate.model_validate(rec) if rec else None

    def create(self, fields: dict[str, Any]) -> RecurringTemplate:
        rec = RecurringTransaction(**fields)
        try:
            self.db.add(rec)
            self.db.commit()
            self.db.refresh(rec)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(_message(exc)) from exc
        return RecurringTemplate.model_validate(rec)

    def update(self, template_id: uuid.UUID, fields: dict[str, Any]) -> None:
        try:
            result = self.db.execute(
                update(RecurringTransaction)
                .where(RecurringTransaction.id == template_id)
                .values(**fields)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(_message(exc)) from exc
        if result.rowcount == 0:
            raise StoreError(f"recurring transaction {template_id} not found")

    def delete(self, template_id: uuid.UUID) -> bool:
        try:
            result = self.db.execute(
                delete(RecurringTransaction).where(RecurringTransaction.id == template_id)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(_message(exc)) from exc
        return result.rowcount > 0


class SqlTransactionStore:
    def __init__(self, db: Session):
        self.db = db

    def insert(self, row: dict[str, Any]) -> uuid.UUID:
        txn = Transaction(**row)
        try:
            self.db.add(txn)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(_message(exc)) from exc
        logger.debug("Inserted transaction %s for account %s", txn.id, txn.account_id)
        return txn.id
