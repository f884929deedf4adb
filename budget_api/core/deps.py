import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from budget_api.core.config import settings
from budget_api.core.database import get_db
from budget_api.services.recurring_generator import RecurringGenerator
from budget_api.services.stores import (
    SqlTemplateStore,
    SqlTransactionStore,
    TemplateStore,
    TransactionStore,
)

# ─── Service auth ──────────────────────────────────────
_bearer = HTTPBearer(auto_error=False)


def require_service_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    """Reject the request unless it carries `Authorization: Bearer <CRON_SECRET>`."""
    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode(), settings.cron_secret.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


# ─── Store wiring ──────────────────────────────────────
def get_template_store(db: Session = Depends(get_db)) -> TemplateStore:
    return SqlTemplateStore(db)


def get_transaction_store(db: Session = Depends(get_db)) -> TransactionStore:
    return SqlTransactionStore(db)


def get_generator(
    templates: TemplateStore = Depends(get_template_store),
    transactions: TransactionStore = Depends(get_transaction_store),
) -> RecurringGenerator:
    return RecurringGenerator(templates, transactions)
