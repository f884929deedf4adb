import uuid
from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

Frequency = Literal["daily", "weekly", "monthly", "yearly", "custom"]
TransactionType = Literal["income", "expense"]


class RecurringTemplate(BaseModel):
    """A recurring-transaction template as read from the store."""
    id: uuid.UUID
    user_id: uuid.UUID
    account_id: uuid.UUID
    template_name: str
    amount: Decimal
    type: str
    category: str
    subcategory: str | None = None
    description: str | None = None
    merchant: str | None = None
    frequency: str                  # stored as free text; unknown values never advance
    custom_interval_days: int | None = None
    start_date: date
    end_date: date | None = None
    next_occurrence: date
    last_generated: date | None = None
    is_active: bool = True
    auto_create: bool = True

    model_config = {"from_attributes": True}

    @property
    def label(self) -> str:
        return self.template_name or str(self.id)


class RecurringTemplateCreate(BaseModel):
    user_id: uuid.UUID
    account_id: uuid.UUID
    template_name: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0)
    type: TransactionType
    category: str = Field(min_length=1, max_length=100)
    subcategory: str | None = None
    description: str | None = None
    merchant: str | None = None
    frequency: Frequency = "monthly"
    custom_interval_days: int | None = Field(default=None, ge=1)
    start_date: date
    end_date: date | None = None
    is_active: bool = True
    auto_create: bool = True

    @model_validator(mode="after")
    def _custom_needs_interval(self):
        if self.frequency == "custom" and self.custom_interval_days is None:
            raise ValueError("custom_interval_days is required when frequency is 'custom'")
        return self


class RecurringTemplateUpdate(BaseModel):
    account_id: uuid.UUID | None = None
    template_name: str | None = Field(default=None, min_length=1, max_length=255)
    amount: Decimal | None = Field(default=None, gt=0)
    type: TransactionType | None = None
    category: str | None = None
    subcategory: str | None = None
    description: str | None = None
    merchant: str | None = None
    frequency: Frequency | None = None
    custom_interval_days: int | None = Field(default=None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None
    auto_create: bool | None = None


class RecurringRunResponse(BaseModel):
    """Body returned by the generation trigger; unset counters are omitted."""
    message: str
    processed: int | None = None
    success: int | None = None
    errors: int | None = None
    error_details: list[str] | None = Field(default=None, alias="errorDetails")

    model_config = {"populate_by_name": True}


class GenerateNowResponse(BaseModel):
    message: str
    transaction_id: uuid.UUID
    next_occurrence: date
    last_generated: date
