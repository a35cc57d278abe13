from sqlmodel import SQLModel

from hr_admin.models.audit import AuditLog
from hr_admin.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from hr_admin.models.comp_time import CompTimeBalance, CompTimeTransaction
from hr_admin.models.enums import (
    AuditAction,
    AuditEntityType,
    CompTimeTransactionType,
    FundingSource,
    LeaveTypeCategory,
    RequestStatus,
)
from hr_admin.models.leave import LeaveRequest, LeaveType
from hr_admin.models.overtime import OvertimeRequest

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "CompTimeBalance",
    "CompTimeTransaction",
    "CompTimeTransactionType",
    "FundingSource",
    "LeaveRequest",
    "LeaveType",
    "LeaveTypeCategory",
    "OvertimeRequest",
    "RequestStatus",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
]
