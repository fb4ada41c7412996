"""FastAPI dependency injection utilities."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.patient import Patient
from app.services.audit import AuditSink, LoggingAuditSink
from app.services.directory import PatientDirectory
from app.services.operations import CoreOperations
from app.services.rbac import Permission, RBACService, UserRole

# Security scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller, as described by the access token."""

    id: str
    role: UserRole
    name: str | None = None


async def get_current_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict | None:
    """Extract and decode the current JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Decoded token payload or None
    """
    if not credentials:
        return None

    payload = decode_access_token(credentials.credentials)
    return payload


async def get_current_actor(
    token: Annotated[dict | None, Depends(get_current_token)],
) -> Actor:
    """Build the calling actor from the token claims.

    Raises:
        HTTPException: 401 without a valid token, 403 for an unknown role
    """
    if not token or not token.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        role = UserRole(token.get("role"))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid role",
        ) from None

    return Actor(id=token["sub"], role=role, name=token.get("name"))


def require_permissions(*permissions: Permission):
    """Create a dependency that requires specific permissions.

    Usage:
        @router.delete("/{id}", dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_DELETE))])

    Args:
        permissions: Required permissions (actor must have all)

    Returns:
        Dependency function
    """

    async def permission_checker(
        actor: Annotated[Actor, Depends(get_current_actor)],
    ) -> Actor:
        if not RBACService.has_all_permissions(actor.role, list(permissions)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return actor

    return permission_checker


async def get_current_patient(
    actor: Annotated[Actor, Depends(get_current_actor)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> Patient:
    """Get the patient record linked to the calling patient account.

    Raises:
        HTTPException: If the caller is not a patient or has no record
    """
    if actor.role != UserRole.PATIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Patient authentication required",
        )

    patient = await PatientDirectory(session).get_by_user_id(actor.id)
    if not patient:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Patient not found",
        )

    return patient


def get_audit_sink() -> AuditSink:
    """Audit sink for request handlers. Overridden in tests."""
    return LoggingAuditSink()


async def get_operations(
    session: Annotated[AsyncSession, Depends(get_db)],
    audit_sink: Annotated[AuditSink, Depends(get_audit_sink)],
) -> CoreOperations:
    return CoreOperations(session, audit_sink)


# Type aliases for cleaner dependency injection
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
CurrentPatient = Annotated[Patient, Depends(get_current_patient)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Operations = Annotated[CoreOperations, Depends(get_operations)]
