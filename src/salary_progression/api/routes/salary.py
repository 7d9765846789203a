"""Salary progression API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from salary_progression.api.dependencies import ActorId, DbSession, TenantId
from salary_progression.api.schemas import (
    BatchApprovalResponse,
    EligibilityDetailResponse,
    EligibilityListResponse,
    EligibilityResponse,
    EligibilitySummaryResponse,
    ErrorResponse,
    ManualJumpRequest,
    MassRaisePreviewRequest,
    MassRaisePreviewResponse,
    MassRaiseRequest,
    MassRaiseResponse,
    PageMetaResponse,
    ProcessBatchRequest,
    ProcessIncrementRequest,
    ProjectionResponse,
    PromotionPreviewRequest,
    PromotionPreviewResponse,
    PromotionRequest,
    RankStepsResponse,
    RejectEligibilityRequest,
    SalaryHistoryDetailResponse,
    SalaryHistoryListResponse,
    SalaryHistoryResponse,
    ScanRequest,
    ScanResponse,
    SortOrder,
    StepDistributionResponse,
)
from salary_progression.config import get_settings
from salary_progression.services import (
    EligibilityFilter,
    EligibilityQueryService,
    EligibilityScanner,
    EligibilityStatus,
    HistoryFilter,
    MassRaiseOptions,
    ReportingService,
    SalaryChangeType,
    SalaryHistoryService,
    SalaryProgressionService,
)

router = APIRouter(prefix="/salary", tags=["salary"])

NOT_FOUND = {404: {"model": ErrorResponse}}
CONFLICT = {409: {"model": ErrorResponse}}
BAD_REQUEST = {400: {"model": ErrorResponse}}


# ============================================================================
# Eligibility
# ============================================================================


@router.get(
    "/eligibility",
    response_model=EligibilityListResponse,
    responses={**BAD_REQUEST},
)
async def list_eligibilities(
    db: DbSession,
    tenant_id: TenantId,
    status_filter: Annotated[EligibilityStatus | None, Query(alias="status")] = None,
    rank_id: UUID | None = None,
    current_step: Annotated[int | None, Query(ge=0)] = None,
    eligibility_date_from: date | None = None,
    eligibility_date_to: date | None = None,
    org_unit_id: UUID | None = None,
    search: str | None = None,
    sort_by: str = "eligibility_date",
    sort_order: SortOrder = "asc",
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> EligibilityListResponse:
    """List eligibility records with filters, sorting and pagination."""
    settings = get_settings()
    result = await EligibilityQueryService(db).list_eligibilities(
        tenant_id,
        EligibilityFilter(
            status=status_filter,
            rank_id=rank_id,
            current_step=current_step,
            eligibility_date_from=eligibility_date_from,
            eligibility_date_to=eligibility_date_to,
            org_unit_id=org_unit_id,
            search=search,
        ),
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=min(limit or settings.default_page_size, settings.max_page_size),
    )
    return EligibilityListResponse(
        data=[EligibilityDetailResponse.model_validate(r) for r in result.data],
        meta=PageMetaResponse.model_validate(result.meta),
    )


@router.get("/eligibility/today", response_model=list[EligibilityDetailResponse])
async def list_due_today(db: DbSession, tenant_id: TenantId) -> list[EligibilityDetailResponse]:
    """PENDING eligibility records falling due today."""
    records = await EligibilityQueryService(db).list_due_today(tenant_id)
    return [EligibilityDetailResponse.model_validate(r) for r in records]


@router.get("/eligibility/summary", response_model=EligibilitySummaryResponse)
async def get_eligibility_summary(
    db: DbSession, tenant_id: TenantId
) -> EligibilitySummaryResponse:
    """Counts for the eligibility dashboard."""
    summary = await EligibilityQueryService(db).get_eligibility_summary(tenant_id)
    return EligibilitySummaryResponse.model_validate(summary)


@router.post(
    "/eligibility/check",
    response_model=ScanResponse,
    responses={**NOT_FOUND},
)
async def run_eligibility_check(
    db: DbSession,
    tenant_id: TenantId,
    payload: ScanRequest | None = None,
) -> ScanResponse:
    """Run the eligibility scan for the tenant now."""
    scan_date = payload.scan_date if payload else None
    result = await EligibilityScanner(db).run_eligibility_scan(tenant_id, scan_date)
    await db.commit()
    return ScanResponse.model_validate(result)


# ============================================================================
# Step increments
# ============================================================================


@router.post(
    "/process-increment",
    response_model=SalaryHistoryResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def process_increment(
    db: DbSession,
    tenant_id: TenantId,
    actor: ActorId,
    payload: ProcessIncrementRequest,
) -> SalaryHistoryResponse:
    """Approve one PENDING eligibility and apply the step increment."""
    entry = await SalaryProgressionService(db).approve_one(
        tenant_id,
        payload.eligibility_id,
        processed_by=actor,
        effective_date=payload.effective_date,
        notes=payload.notes,
    )
    await db.commit()
    return SalaryHistoryResponse.model_validate(entry)


@router.post("/process-batch", response_model=BatchApprovalResponse)
async def process_batch(
    db: DbSession,
    tenant_id: TenantId,
    actor: ActorId,
    payload: ProcessBatchRequest,
) -> BatchApprovalResponse:
    """Approve several eligibilities; failures are reported per item."""
    result = await SalaryProgressionService(db).approve_batch(
        tenant_id,
        payload.eligibility_ids,
        processed_by=actor,
        effective_date=payload.effective_date,
        notes=payload.notes,
    )
    await db.commit()
    return BatchApprovalResponse.model_validate(result)


@router.post(
    "/reject-eligibility",
    response_model=EligibilityResponse,
    responses={**NOT_FOUND, **CONFLICT, **BAD_REQUEST},
)
async def reject_eligibility(
    db: DbSession,
    tenant_id: TenantId,
    actor: ActorId,
    payload: RejectEligibilityRequest,
) -> EligibilityResponse:
    """Reject a PENDING eligibility with a reason."""
    record = await SalaryProgressionService(db).reject(
        tenant_id,
        payload.eligibility_id,
        reason=payload.rejection_reason,
        processed_by=actor,
    )
    await db.commit()
    return EligibilityResponse.model_validate(record)


# ============================================================================
# Manual jumps, mass raises, promotions
# ============================================================================


@router.post(
    "/manual-jump",
    response_model=SalaryHistoryResponse,
    responses={**NOT_FOUND, **CONFLICT, **BAD_REQUEST},
)
async def manual_jump(
    db: DbSession,
    tenant_id: TenantId,
    actor: ActorId,
    payload: ManualJumpRequest,
) -> SalaryHistoryResponse:
    """Move an employee directly to a higher step."""
    entry = await SalaryProgressionService(db).manual_jump(
        tenant_id,
        payload.employee_id,
        to_step=payload.to_step,
        order_reference=payload.order_reference,
        reason=payload.reason,
        effective_date=payload.effective_date,
        processed_by=actor,
        document_path=payload.document_path,
        notes=payload.notes,
    )
    await db.commit()
    return SalaryHistoryResponse.model_validate(entry)


def _raise_options(payload: MassRaisePreviewRequest) -> MassRaiseOptions:
    return MassRaiseOptions(
        increment_steps=payload.increment_steps,
        target_step=payload.target_step,
        org_unit_id=payload.org_unit_id,
    )


@router.post(
    "/mass-raise/preview",
    response_model=MassRaisePreviewResponse,
    responses={**NOT_FOUND, **BAD_REQUEST},
)
async def preview_mass_raise(
    db: DbSession,
    tenant_id: TenantId,
    payload: MassRaisePreviewRequest,
) -> MassRaisePreviewResponse:
    """Simulate a mass raise without applying it."""
    preview = await SalaryProgressionService(db).mass_raise_preview(
        tenant_id, payload.rank_id, payload.raise_type, _raise_options(payload)
    )
    return MassRaisePreviewResponse.model_validate(preview)


@router.post(
    "/mass-raise",
    response_model=MassRaiseResponse,
    responses={**NOT_FOUND, **BAD_REQUEST},
)
async def process_mass_raise(
    db: DbSession,
    tenant_id: TenantId,
    actor: ActorId,
    payload: MassRaiseRequest,
) -> MassRaiseResponse:
    """Raise every active employee of a rank."""
    result = await SalaryProgressionService(db).mass_raise(
        tenant_id,
        payload.rank_id,
        payload.raise_type,
        _raise_options(payload),
        order_reference=payload.order_reference,
        reason=payload.reason,
        effective_date=payload.effective_date,
        processed_by=actor,
        document_path=payload.document_path,
        notes=payload.notes,
    )
    await db.commit()
    return MassRaiseResponse.model_validate(result)


@router.post(
    "/promotion/preview",
    response_model=PromotionPreviewResponse,
    responses={**NOT_FOUND, **BAD_REQUEST},
)
async def preview_promotion(
    db: DbSession,
    tenant_id: TenantId,
    payload: PromotionPreviewRequest,
) -> PromotionPreviewResponse:
    """Show the step and salary an employee would get in a new rank."""
    preview = await ReportingService(db).promotion_preview(
        tenant_id, payload.employee_id, payload.new_rank_id
    )
    return PromotionPreviewResponse.model_validate(preview)


@router.post(
    "/promotion/process",
    response_model=SalaryHistoryResponse,
    status_code=status.HTTP_200_OK,
    responses={**NOT_FOUND, **CONFLICT, **BAD_REQUEST},
)
async def process_promotion(
    db: DbSession,
    tenant_id: TenantId,
    actor: ActorId,
    payload: PromotionRequest,
) -> SalaryHistoryResponse:
    """Apply a promotion's salary placement."""
    entry = await SalaryProgressionService(db).promote(
        tenant_id,
        payload.employee_id,
        payload.new_rank_id,
        effective_date=payload.effective_date,
        processed_by=actor,
        order_reference=payload.order_reference,
        reason=payload.reason,
        document_path=payload.document_path,
    )
    await db.commit()
    return SalaryHistoryResponse.model_validate(entry)


# ============================================================================
# History and reports
# ============================================================================


@router.get(
    "/employees/{employee_id}/history",
    response_model=SalaryHistoryListResponse,
)
async def get_employee_history(
    db: DbSession,
    tenant_id: TenantId,
    employee_id: Annotated[UUID, Path()],
    change_type: SalaryChangeType | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    rank_id: UUID | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> SalaryHistoryListResponse:
    """Salary history of one employee, newest first."""
    settings = get_settings()
    result = await SalaryHistoryService(db).get_employee_history(
        tenant_id,
        employee_id,
        HistoryFilter(
            change_type=change_type,
            date_from=date_from,
            date_to=date_to,
            rank_id=rank_id,
        ),
        page=page,
        limit=min(limit or settings.default_page_size, settings.max_page_size),
    )
    return SalaryHistoryListResponse(
        data=[SalaryHistoryDetailResponse.model_validate(e) for e in result.data],
        meta=PageMetaResponse.model_validate(result.meta),
    )


@router.get(
    "/employees/{employee_id}/projection",
    response_model=ProjectionResponse,
    responses={**NOT_FOUND, **BAD_REQUEST},
)
async def get_projection(
    db: DbSession,
    tenant_id: TenantId,
    employee_id: Annotated[UUID, Path()],
) -> ProjectionResponse:
    """Projected salary path to the rank ceiling."""
    projection = await ReportingService(db).get_projection(tenant_id, employee_id)
    return ProjectionResponse.model_validate(projection)


@router.get("/reports/step-distribution", response_model=StepDistributionResponse)
async def get_step_distribution(
    db: DbSession,
    tenant_id: TenantId,
    org_unit_id: UUID | None = None,
) -> StepDistributionResponse:
    """How employees spread over salary steps, per rank and overall."""
    report = await ReportingService(db).get_step_distribution(tenant_id, org_unit_id)
    return StepDistributionResponse.model_validate(report)


@router.get(
    "/ranks/{rank_id}/steps",
    response_model=RankStepsResponse,
    responses={**NOT_FOUND},
)
async def get_rank_steps(
    db: DbSession,
    tenant_id: TenantId,
    rank_id: Annotated[UUID, Path()],
) -> RankStepsResponse:
    """A rank's salary ladder."""
    schedule = await ReportingService(db).get_rank_steps(tenant_id, rank_id)
    return RankStepsResponse.model_validate(schedule)
