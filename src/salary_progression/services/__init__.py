"""Salary progression services."""

from salary_progression.services.eligibility_queries import (
    EligibilityFilter,
    EligibilityQueryService,
    EligibilitySummary,
)
from salary_progression.services.eligibility_scanner import EligibilityScanner, ScanResult
from salary_progression.services.history_service import (
    ChangeSummary,
    HistoryFilter,
    SalaryHistoryService,
)
from salary_progression.services.pagination import Page, PageMeta, paginate
from salary_progression.services.progression_service import (
    BatchApprovalResult,
    MassRaiseOptions,
    MassRaisePreview,
    MassRaiseResult,
    MassRaiseType,
    SalaryProgressionService,
)
from salary_progression.services.rank_catalog import RankCatalog
from salary_progression.services.reporting_service import ReportingService
from salary_progression.services.state_machine import (
    EligibilityStateMachine,
    EligibilityStatus,
    InvalidTransitionError,
    SalaryChangeType,
)

__all__ = [
    "BatchApprovalResult",
    "ChangeSummary",
    "EligibilityFilter",
    "EligibilityQueryService",
    "EligibilityScanner",
    "EligibilityStateMachine",
    "EligibilityStatus",
    "EligibilitySummary",
    "HistoryFilter",
    "InvalidTransitionError",
    "MassRaiseOptions",
    "MassRaisePreview",
    "MassRaiseResult",
    "MassRaiseType",
    "Page",
    "PageMeta",
    "RankCatalog",
    "ReportingService",
    "SalaryChangeType",
    "SalaryHistoryService",
    "SalaryProgressionService",
    "ScanResult",
    "paginate",
]
