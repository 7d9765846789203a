"""Pydantic schemas for API request/response models.

Monetary fields are ``Decimal`` and serialize to JSON as strings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from salary_progression.services.progression_service import MassRaiseType
from salary_progression.services.state_machine import EligibilityStatus


# ============================================================================
# Shared schemas
# ============================================================================


class ORMModel(BaseModel):
    """Base for responses built from ORM rows or service dataclasses."""

    model_config = ConfigDict(from_attributes=True)


class PageMetaResponse(ORMModel):
    """Pagination metadata."""

    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class RankSummary(ORMModel):
    rank_id: UUID
    code: str
    name: str


class EmployeeSummary(ORMModel):
    employee_id: UUID
    employee_number: str
    full_name: str
    org_unit_id: UUID | None = None


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


# ============================================================================
# Eligibility schemas
# ============================================================================


class EligibilityResponse(ORMModel):
    """Schema for one eligibility record."""

    eligibility_id: UUID
    tenant_id: UUID
    employee_id: UUID
    rank_id: UUID
    current_step: int
    next_step_number: int
    current_salary: Decimal
    next_salary: Decimal
    salary_increase: Decimal
    eligibility_date: date
    status: EligibilityStatus
    processed_at: datetime | None = None
    processed_by: str | None = None
    rejection_reason: str | None = None
    salary_history_id: UUID | None = None
    created_at: datetime


class EligibilityDetailResponse(EligibilityResponse):
    """Eligibility record with its employee and rank."""

    employee: EmployeeSummary
    rank: RankSummary


class EligibilityListResponse(BaseModel):
    data: list[EligibilityDetailResponse]
    meta: PageMetaResponse


class RankPendingCountResponse(ORMModel):
    rank_id: UUID
    rank_code: str
    rank_name: str
    count: int


class EligibilitySummaryResponse(ORMModel):
    pending: int
    approved_this_month: int
    rejected_this_month: int
    upcoming_next_30_days: int
    by_rank: list[RankPendingCountResponse]


class ScanRequest(BaseModel):
    """Run the eligibility scan as of a date (default today)."""

    scan_date: date | None = None


class ScanResponse(ORMModel):
    tenant_id: UUID
    scan_date: date
    created: int
    skipped_not_due: int
    skipped_existing: int
    skipped_schedule_gap: int


# ============================================================================
# Step increment schemas
# ============================================================================


class ProcessIncrementRequest(BaseModel):
    eligibility_id: UUID
    effective_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)


class ProcessBatchRequest(BaseModel):
    eligibility_ids: list[UUID] = Field(min_length=1)
    effective_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)


class ProcessIncrementResultResponse(ORMModel):
    eligibility_id: UUID
    success: bool
    employee_id: UUID | None = None
    salary_history_id: UUID | None = None
    error: str | None = None
    error_code: str | None = None


class BatchApprovalResponse(ORMModel):
    processed: int
    failed: int
    results: list[ProcessIncrementResultResponse]


class RejectEligibilityRequest(BaseModel):
    eligibility_id: UUID
    rejection_reason: str = Field(min_length=1, max_length=500)


# ============================================================================
# Salary change schemas
# ============================================================================


class ManualJumpRequest(BaseModel):
    employee_id: UUID
    to_step: int = Field(ge=0)
    order_reference: str = Field(min_length=1, max_length=100)
    reason: str = Field(min_length=1, max_length=500)
    effective_date: date
    document_path: str | None = None
    notes: str | None = Field(default=None, max_length=500)


class MassRaisePreviewRequest(BaseModel):
    rank_id: UUID
    raise_type: MassRaiseType
    increment_steps: int = Field(default=1, ge=1)
    target_step: int | None = Field(default=None, ge=0)
    org_unit_id: UUID | None = None


class MassRaiseRequest(MassRaisePreviewRequest):
    order_reference: str = Field(min_length=1, max_length=100)
    reason: str = Field(min_length=1, max_length=500)
    effective_date: date
    document_path: str | None = None
    notes: str | None = Field(default=None, max_length=500)


class MassRaisePreviewRowResponse(ORMModel):
    employee_id: UUID
    employee_number: str
    full_name: str
    current_step: int
    new_step: int
    current_salary: Decimal
    new_salary: Decimal | None = None
    salary_increase: Decimal
    will_be_skipped: bool
    skip_reason: str | None = None
    will_fail: bool
    failure_reason: str | None = None


class MassRaisePreviewResponse(ORMModel):
    rank_id: UUID
    rank_name: str
    raise_type: MassRaiseType
    total_employees: int
    affected_employees: int
    skipped_employees: int
    failed_employees: int
    total_salary_increase: Decimal
    rows: list[MassRaisePreviewRowResponse]


class MassRaiseEmployeeResultResponse(ORMModel):
    employee_id: UUID
    employee_number: str
    full_name: str
    success: bool
    skipped: bool
    from_step: int | None = None
    to_step: int | None = None
    from_salary: Decimal | None = None
    to_salary: Decimal | None = None
    salary_history_id: UUID | None = None
    skip_reason: str | None = None
    error: str | None = None


class MassRaiseResponse(ORMModel):
    total_processed: int
    success_count: int
    failure_count: int
    skipped_count: int
    results: list[MassRaiseEmployeeResultResponse]


class PromotionPreviewRequest(BaseModel):
    employee_id: UUID
    new_rank_id: UUID


class PromotionRequest(PromotionPreviewRequest):
    effective_date: date
    order_reference: str | None = Field(default=None, max_length=100)
    reason: str | None = Field(default=None, max_length=500)
    document_path: str | None = None


class PromotionPreviewResponse(ORMModel):
    employee_id: UUID
    full_name: str
    current_rank: RankSummary
    new_rank: RankSummary
    current_step: int
    current_salary: Decimal
    new_step: int
    new_salary: Decimal
    salary_increase: Decimal
    percentage_increase: Decimal
    explanation: str


# ============================================================================
# History schemas
# ============================================================================


class SalaryHistoryResponse(ORMModel):
    """Schema for one salary history entry."""

    salary_history_id: UUID
    tenant_id: UUID
    employee_id: UUID
    rank_id: UUID
    previous_rank_id: UUID | None = None
    change_type: str
    from_step: int | None = None
    to_step: int
    from_salary: Decimal | None = None
    to_salary: Decimal
    effective_date: date
    is_automatic: bool
    processed_by: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    reason: str | None = None
    order_reference: str | None = None
    document_path: str | None = None
    notes: str | None = None
    created_at: datetime


class SalaryHistoryDetailResponse(SalaryHistoryResponse):
    rank: RankSummary
    previous_rank: RankSummary | None = None


class SalaryHistoryListResponse(BaseModel):
    data: list[SalaryHistoryDetailResponse]
    meta: PageMetaResponse


# ============================================================================
# Report schemas
# ============================================================================


class ProjectionPointResponse(ORMModel):
    year: int
    step: int
    salary: Decimal
    effective_date: date
    is_ceiling: bool


class ProjectionResponse(ORMModel):
    employee_id: UUID
    employee_number: str
    full_name: str
    rank: RankSummary
    current_step: int
    current_salary: Decimal
    employment_date: date
    max_step: int
    ceiling_salary: Decimal
    is_at_ceiling: bool
    years_to_reach_ceiling: int
    projections: list[ProjectionPointResponse]
    projected_ceiling_date: date | None = None
    next_eligibility_date: date | None = None
    days_until_next_eligibility: int | None = None


class StepCountResponse(ORMModel):
    step: int
    count: int
    percentage: Decimal
    salary_amount: Decimal | None = None


class RankDistributionResponse(ORMModel):
    rank_id: UUID
    rank_code: str
    rank_name: str
    total_employees: int
    base_salary: Decimal
    ceiling_salary: Decimal
    distribution: list[StepCountResponse]


class StepDistributionResponse(ORMModel):
    tenant_id: UUID
    generated_at: datetime
    total_employees: int
    by_rank: list[RankDistributionResponse]
    overall_distribution: list[StepCountResponse]
    average_step: Decimal
    employees_at_ceiling: int
    ceiling_percentage: Decimal


class SalaryStepResponse(ORMModel):
    step_number: int
    salary_amount: Decimal
    years_required: int


class RankStepsResponse(ORMModel):
    rank_id: UUID
    code: str
    name: str
    category: str | None = None
    level: int
    base_salary: Decimal
    ceiling_salary: Decimal
    step_count: int
    step_period_years: int
    max_step: int
    steps: list[SalaryStepResponse]


SortOrder = Literal["asc", "desc"]
