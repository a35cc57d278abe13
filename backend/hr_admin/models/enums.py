from __future__ import annotations

import enum


class RequestStatus(enum.StrEnum):
    """State machine shared by leave and overtime requests."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Statuses that block an overlapping request for the same employee.
ACTIVE_REQUEST_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED)


class CompTimeTransactionType(enum.StrEnum):
    """Kind of comp-time ledger entry."""

    EARN = "earn"
    SPEND = "spend"
    ADJUST = "adjust"


class LeaveTypeCategory(enum.StrEnum):
    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    UNPAID = "unpaid"
    OTHER = "other"


class FundingSource(enum.StrEnum):
    """What a leave type draws on when a request of that type is approved."""

    STANDARD = "standard"
    COMP_TIME = "comp_time"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_TYPE = "LEAVE_TYPE"
    LEAVE_REQUEST = "LEAVE_REQUEST"
    OVERTIME_REQUEST = "OVERTIME_REQUEST"
    COMP_TIME_TRANSACTION = "COMP_TIME_TRANSACTION"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
