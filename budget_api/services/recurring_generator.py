"""
Recurring transaction generator.

Scans templates that are due on the run date, books one ledger transaction
per template, advances each template's schedule, and deactivates templates
whose end date has passed.

Each template is handled on its own: a failed insert leaves the template
due so the next run retries it, and no failure of one template stops the
rest of the batch. Runs are not coordinated with each other, and a
template whose schedule update fails after its transaction was booked will
be booked again on the next run.

Scheduled task (via celery beat):
  generate_due_recurring  daily at GENERATE_HOUR:GENERATE_MINUTE UTC
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from budget_api.core.database import get_session_factory
from budget_api.schemas.recurring import RecurringTemplate
from budget_api.services.schedule import local_today, next_occurrence, to_run_date
from budget_api.services.stores import (
    SqlTemplateStore,
    SqlTransactionStore,
    StoreError,
    TemplateStore,
    TransactionStore,
)
from budget_api.worker import celery_app

logger = logging.getLogger(__name__)

GENERATED = "generated"
EXPIRED = "expired"
FAILED = "failed"


@dataclass
class ItemOutcome:
    template_id: uuid.UUID
    status: str
    error: str | None = None
    transaction_id: uuid.UUID | None = None
    next_occurrence: date | None = None


@dataclass
class RunReport:
    run_date: date
    outcomes: list[ItemOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def success(self) -> int:
        return sum(1 for o in self.outcomes if o.status == GENERATED)

    @property
    def expired(self) -> int:
        return sum(1 for o in self.outcomes if o.status == EXPIRED)

    @property
    def errors(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FAILED)

    @property
    def error_details(self) -> list[str]:
        return [o.error for o in self.outcomes if o.status == FAILED and o.error]

    def as_dict(self) -> dict[str, Any]:
        if not self.outcomes:
            return {"message": "No recurring transactions due", "processed": 0}
        body: dict[str, Any] = {
            "message": f"Processed {self.processed} recurring transactions",
            "success": self.success,
            "errors": self.errors,
        }
        if self.error_details:
            body["errorDetails"] = self.error_details
        return body


def build_transaction(template: RecurringTemplate, today: date) -> dict[str, Any]:
    """Ledger row for one occurrence of `template`, dated the run date."""
    return {
        "user_id": template.user_id,
        "account_id": template.account_id,
        "date": today,
        "amount": template.amount,
        "type": template.type,
        "category": template.category,
        "subcategory": template.subcategory,
        "description": template.description,
        "merchant": template.merchant,
        "is_recurring": True,
        "is_internal_transfer": False,
    }


class RecurringGenerator:
    def __init__(self, templates: TemplateStore, transactions: TransactionStore):
        self.templates = templates
        self.transactions = transactions

    def run_cycle(self, now: date | datetime) -> RunReport:
        """
        Process every due template for the calendar date of `now`.

        Raises StoreError only when the due set itself cannot be read;
        per-template failures are recorded in the returned report.
        """
        today = to_run_date(now)
        due = self.templates.list_due(today)
        report = RunReport(run_date=today)

        if not due:
            logger.info("No recurring transactions due on %s", today)
            return report

        logger.info("Generating %d recurring transaction(s) for %s", len(due), today)
        for template in due:
            report.outcomes.append(self._process(template, today))

        logger.info(
            "Recurring run %s: %d generated, %d expired, %d failed",
            today, report.success, report.expired, report.errors,
        )
        return report

    def generate_now(self, template: RecurringTemplate, now: date | datetime) -> ItemOutcome:
        """Book one occurrence of `template` immediately, whether or not it is due."""
        today = to_run_date(now)
        try:
            return self._materialize(template, today)
        except Exception as exc:
            logger.exception("Error generating recurring transaction %s", template.label)
            return ItemOutcome(template.id, FAILED, f"{template.label}: {_describe(exc)}")

    def _process(self, template: RecurringTemplate, today: date) -> ItemOutcome:
        try:
            if template.end_date and template.end_date < today:
                return self._expire(template)
            return self._materialize(template, today)
        except Exception as exc:
            logger.exception("Error processing recurring transaction %s", template.label)
            return ItemOutcome(template.id, FAILED, f"{template.label}: {_describe(exc)}")

    def _expire(self, template: RecurringTemplate) -> ItemOutcome:
        try:
            self.templates.update(template.id, {"is_active": False})
        except StoreError as exc:
            logger.error("Error deactivating recurring transaction %s: %s", template.label, exc)
            return ItemOutcome(template.id, FAILED, f"Deactivate {template.label}: {exc}")
        logger.info("Deactivated recurring transaction %s (ended %s)", template.label, template.end_date)
        return ItemOutcome(template.id, EXPIRED)

    def _materialize(self, template: RecurringTemplate, today: date) -> ItemOutcome:
        try:
            txn_id = self.transactions.insert(build_transaction(template, today))
        except StoreError as exc:
            logger.error("Error creating transaction for %s: %s", template.label, exc)
            return ItemOutcome(template.id, FAILED, f"{template.label}: {exc}")

        # Advance from the scheduled date, not the run date, so late runs
        # keep the scheduled cadence.
        upcoming = next_occurrence(
            template.next_occurrence, template.frequency, template.custom_interval_days
        )
        try:
            self.templates.update(
                template.id, {"next_occurrence": upcoming, "last_generated": today}
            )
        except StoreError as exc:
            logger.error("Error updating recurring transaction %s: %s", template.label, exc)
            return ItemOutcome(
                template.id, FAILED, f"Update {template.label}: {exc}", transaction_id=txn_id
            )

        return ItemOutcome(template.id, GENERATED, transaction_id=txn_id, next_occurrence=upcoming)


def _describe(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


# ─── Celery task ──────────────────────────────────────────────────────────────

@celery_app.task(name="budget_api.services.recurring_generator.generate_due_recurring")
def generate_due_recurring() -> dict:
    """Daily: run one generation cycle against the database."""
    with get_session_factory()() as db:
        generator = RecurringGenerator(SqlTemplateStore(db), SqlTransactionStore(db))
        report = generator.run_cycle(local_today())
    return report.as_dict()
