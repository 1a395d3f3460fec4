"""
Entry API endpoints (nested under a report)
"""
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from activity_ledger.api.deps import get_db, get_current_user_id, get_access_policy
from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.application.entries import (
    CreateEntryUseCase, UpdateEntryUseCase, DestroyEntryUseCase, ListEntriesUseCase,
    EntryView, UNSET,
)
from activity_ledger.domain.errors import EntryNotFoundError
from activity_ledger.infrastructure.db.repository import EntryRepository


router = APIRouter(prefix="/api/v1/reports/{report_id}/entries", tags=["entries"])


# === Request/Response models ===

class CreateEntryRequest(BaseModel):
    date: str
    quantity: str | int | float  # "0.25", "1,5" or a JSON number; normalized by the domain
    unit_price_cents: int
    description: str | None = None
    mission_id: int | None = None


class UpdateEntryRequest(BaseModel):
    date: str | None = None
    quantity: str | int | float | None = None
    unit_price_cents: int | None = None
    description: str | None = None
    mission_id: int | None = None


class EntryResponse(BaseModel):
    id: int
    report_id: int
    mission_id: int | None
    date: date
    quantity: str
    unit_price_cents: int
    line_total_cents: int
    description: str | None


class PaginationMeta(BaseModel):
    total: int
    page: int
    per_page: int
    page_count: int


class EntryListResponse(BaseModel):
    items: list[EntryResponse]
    pagination: PaginationMeta


# === Helper functions ===

def _to_response(view: EntryView) -> EntryResponse:
    return EntryResponse(
        id=view.id,
        report_id=view.report_id,
        mission_id=view.mission_id,
        date=view.date,
        quantity=str(Decimal(view.quantity)),
        unit_price_cents=view.unit_price_cents,
        line_total_cents=view.line_total_cents,
        description=view.description,
    )


def _ensure_entry_in_report(db: Session, report_id: int, entry_id: int) -> None:
    """Entry ids are only addressable under their own report."""
    if EntryRepository(db).report_id_of(entry_id) != report_id:
        raise EntryNotFoundError()


# === Endpoints ===

@router.post("/", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
def create_entry(
    report_id: int,
    req: CreateEntryRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    """Добавить строку в черновик"""
    attrs = req.model_dump(exclude={"mission_id"}, exclude_unset=True)
    view = CreateEntryUseCase(db, policy).execute(
        report_id=report_id,
        actor_id=user_id,
        attrs=attrs,
        mission_id=req.mission_id,
    )
    return _to_response(view)


@router.get("/", response_model=EntryListResponse)
def list_entries(
    report_id: int,
    page: int | None = None,
    per_page: int | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    mission_id: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    result = ListEntriesUseCase(db, policy).execute(
        report_id,
        user_id,
        page=page,
        per_page=per_page,
        start_date=start_date,
        end_date=end_date,
        mission_id=mission_id,
    )
    return EntryListResponse(
        items=[_to_response(v) for v in result.items],
        pagination=PaginationMeta(**result.meta()),
    )


@router.patch("/{entry_id}", response_model=EntryResponse)
def update_entry(
    report_id: int,
    entry_id: int,
    req: UpdateEntryRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    _ensure_entry_in_report(db, report_id, entry_id)
    payload = req.model_dump(exclude_unset=True)
    mission_id = payload.pop("mission_id", UNSET)
    view = UpdateEntryUseCase(db, policy).execute(
        entry_id, user_id, changes=payload, mission_id=mission_id
    )
    return _to_response(view)


@router.delete("/{entry_id}")
def delete_entry(
    report_id: int,
    entry_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    _ensure_entry_in_report(db, report_id, entry_id)
    DestroyEntryUseCase(db, policy).execute(entry_id, user_id)
    return {"status": "deleted"}
