"""Business logic services."""

from app.services.audit import AuditRecord, AuditSink, LoggingAuditSink, RecordingAuditSink
from app.services.errors import CoreError, ErrorKind
from app.services.rbac import Permission, RBACService, UserRole
from app.services.results import Failure, Result, Success

__all__ = [
    "AuditRecord",
    "AuditSink",
    "LoggingAuditSink",
    "RecordingAuditSink",
    "CoreError",
    "ErrorKind",
    "Failure",
    "Result",
    "Success",
    "Permission",
    "RBACService",
    "UserRole",
]
