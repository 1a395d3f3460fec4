"""
Activity report API endpoints
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from activity_ledger.api.deps import get_db, get_current_user_id, get_access_policy
from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.application.activity_reports import (
    CreateReportUseCase, UpdateReportUseCase, GetReportUseCase,
    SubmitReportUseCase, LockReportUseCase, DestroyReportUseCase,
)
from activity_ledger.application.export import ExportReportUseCase
from activity_ledger.application.mission_links import MissionLinkCounter
from activity_ledger.application.report_listing import ListReportsUseCase
from activity_ledger.infrastructure.db.models import ActivityReport


router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


# === Request/Response models ===

class CreateReportRequest(BaseModel):
    month: int
    year: int
    currency: str | None = None  # ISO 4217, по умолчанию EUR
    description: str | None = None


class UpdateReportRequest(BaseModel):
    month: int | None = None
    year: int | None = None
    currency: str | None = None
    description: str | None = None


class ReportResponse(BaseModel):
    id: int
    owner_id: int
    month: int
    year: int
    status: str
    description: str | None
    currency: str
    total_days: str  # Decimal as string
    total_amount_cents: int
    mission_ids: list[int]
    submitted_at: datetime | None
    locked_at: datetime | None


class PaginationMeta(BaseModel):
    total: int
    page: int
    per_page: int
    page_count: int


class ReportListResponse(BaseModel):
    items: list[ReportResponse]
    pagination: PaginationMeta


# === Helper function ===

def _to_response(db: Session, report: ActivityReport) -> ReportResponse:
    return ReportResponse(
        id=report.id,
        owner_id=report.owner_id,
        month=report.month,
        year=report.year,
        status=report.status,
        description=report.description,
        currency=report.currency,
        total_days=str(report.total_days),
        total_amount_cents=report.total_amount_cents,
        mission_ids=sorted(MissionLinkCounter(db).linked_mission_ids(report)),
        submitted_at=report.submitted_at,
        locked_at=report.locked_at,
    )


# === Endpoints ===

@router.post("/", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(
    req: CreateReportRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Создать отчёт (draft)"""
    report = CreateReportUseCase(db).execute(
        owner_id=user_id,
        month=req.month,
        year=req.year,
        currency=req.currency,
        description=req.description,
    )
    return _to_response(db, report)


@router.get("/", response_model=ReportListResponse)
def list_reports(
    status_filter: str | None = Query(None, alias="status"),
    year: int | None = None,
    month: int | None = None,
    currency: str | None = None,
    q: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    """Список отчётов с фильтрами и пагинацией"""
    result = ListReportsUseCase(db, policy).execute(
        actor_id=user_id,
        filters={"status": status_filter, "year": year, "month": month, "currency": currency, "q": q},
        page=page,
        per_page=per_page,
    )
    return ReportListResponse(
        items=[_to_response(db, r) for r in result.items],
        pagination=PaginationMeta(**result.meta()),
    )


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(
    report_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    report = GetReportUseCase(db, policy).execute(report_id, user_id)
    return _to_response(db, report)


@router.patch("/{report_id}", response_model=ReportResponse)
def update_report(
    report_id: int,
    req: UpdateReportRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    report = UpdateReportUseCase(db, policy).execute(
        report_id, user_id, req.model_dump(exclude_unset=True)
    )
    return _to_response(db, report)


@router.post("/{report_id}/submit", response_model=ReportResponse)
def submit_report(
    report_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    """draft -> submitted"""
    report = SubmitReportUseCase(db, policy).execute(report_id, user_id)
    return _to_response(db, report)


@router.post("/{report_id}/lock", response_model=ReportResponse)
def lock_report(
    report_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    """submitted -> locked"""
    report = LockReportUseCase(db, policy).execute(report_id, user_id)
    return _to_response(db, report)


@router.delete("/{report_id}")
def delete_report(
    report_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    DestroyReportUseCase(db, policy).execute(report_id, user_id)
    return {"status": "deleted"}


@router.get("/{report_id}/export")
def export_report(
    report_id: int,
    format: str = "csv",
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    policy: ReportAccessPolicy = Depends(get_access_policy),
):
    """CSV (UTF-8 + BOM) для submitted / locked отчётов"""
    result = ExportReportUseCase(db, policy).execute(report_id, user_id, fmt=format)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
