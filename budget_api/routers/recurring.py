import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from budget_api.core.config import settings
from budget_api.core.deps import get_generator, get_template_store, require_service_token
from budget_api.core.ratelimit import limiter
from budget_api.schemas.recurring import (
    GenerateNowResponse,
    RecurringRunResponse,
    RecurringTemplate,
    RecurringTemplateCreate,
    RecurringTemplateUpdate,
)
from budget_api.services.recurring_generator import FAILED, RecurringGenerator
from budget_api.services.schedule import local_today, next_occurrence
from budget_api.services.stores import TemplateStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/recurring",
    tags=["recurring"],
    dependencies=[Depends(require_service_token)],
)

# Columns that may be cleared with an explicit null in a PATCH
_NULLABLE = {"subcategory", "description", "merchant", "custom_interval_days", "end_date"}
_SCHEDULE_FIELDS = {"start_date", "frequency", "custom_interval_days"}


@router.api_route(
    "/generate",
    methods=["GET", "POST"],
    response_model=RecurringRunResponse,
    response_model_exclude_none=True,
)
@limiter.limit(settings.generate_rate_limit)
def generate_recurring(
    request: Request,
    generator: RecurringGenerator = Depends(get_generator),
):
    """
    Book every due recurring transaction for today.

    Meant for an external cron caller; safe to trigger manually. Any failure
    before per-template processing surfaces as a 500 with `{"error": ...}`.
    """
    try:
        report = generator.run_cycle(local_today())
    except Exception as exc:
        logger.exception("Error in recurring transaction generator")
        return JSONResponse(
            status_code=500, content={"error": str(exc) or exc.__class__.__name__}
        )
    return report.as_dict()


@router.get("/", response_model=list[RecurringTemplate])
def list_recurring(
    user_id: uuid.UUID = Query(...),
    templates: TemplateStore = Depends(get_template_store),
):
    """List a user's recurring templates, soonest occurrence first."""
    return templates.list_for_user(user_id)


@router.post("/", response_model=RecurringTemplate, status_code=201)
def create_recurring(
    payload: RecurringTemplateCreate,
    templates: TemplateStore = Depends(get_template_store),
):
    """Save a template; its first automatic occurrence is one period after start_date."""
    fields = payload.model_dump()
    fields["next_occurrence"] = next_occurrence(
        payload.start_date, payload.frequency, payload.custom_interval_days
    )
    return templates.create(fields)


@router.patch("/{recurring_id}", response_model=RecurringTemplate)
def update_recurring(
    recurring_id: uuid.UUID,
    payload: RecurringTemplateUpdate,
    templates: TemplateStore = Depends(get_template_store),
):
    current = templates.get(recurring_id)
    if not current:
        raise HTTPException(status_code=404, detail="Not found")

    fields = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in _NULLABLE
    }

    if _SCHEDULE_FIELDS & fields.keys():
        merged = current.model_copy(update=fields)
        if merged.frequency == "custom" and not merged.custom_interval_days:
            raise HTTPException(
                status_code=422,
                detail="custom_interval_days is required when frequency is 'custom'",
            )
        fields["next_occurrence"] = next_occurrence(
            merged.start_date, merged.frequency, merged.custom_interval_days
        )

    if fields:
        templates.update(recurring_id, fields)
    return current.model_copy(update=fields)


@router.delete("/{recurring_id}", status_code=204)
def delete_recurring(
    recurring_id: uuid.UUID,
    templates: TemplateStore = Depends(get_template_store),
):
    if not templates.delete(recurring_id):
        raise HTTPException(status_code=404, detail="Not found")


@router.post("/{recurring_id}/generate", response_model=GenerateNowResponse)
def generate_now(
    recurring_id: uuid.UUID,
    templates: TemplateStore = Depends(get_template_store),
    generator: RecurringGenerator = Depends(get_generator),
):
    """Book one occurrence right away, regardless of due date or auto_create."""
    template = templates.get(recurring_id)
    if not template:
        raise HTTPException(status_code=404, detail="Not found")

    today = local_today()
    outcome = generator.generate_now(template, today)
    if outcome.status == FAILED:
        return JSONResponse(status_code=500, content={"error": outcome.error})

    return GenerateNowResponse(
        message=f'Transaction created for "{template.template_name}".',
        transaction_id=outcome.transaction_id,
        next_occurrence=outcome.next_occurrence,
        last_generated=today,
    )
