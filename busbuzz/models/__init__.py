from busbuzz.models.user import User, UserRole
from busbuzz.models.report import Report, ReportKind, FeedbackStatus, ClaimStatus
from busbuzz.models.attachment import Attachment
from busbuzz.models.route import Route
from busbuzz.models.bus import Bus, BusStatus

__all__ = [
    "User", "UserRole",
    "Report", "ReportKind", "FeedbackStatus", "ClaimStatus",
    "Attachment", "Route", "Bus", "BusStatus",
]
