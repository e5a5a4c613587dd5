from typing import Optional, Annotated
from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel
from config.settings import settings
import hmac

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]
RoleHeader = Annotated[Optional[str], Header(alias="X-User-Role")]
SchoolHeader = Annotated[Optional[int], Header(alias="X-School-Id")]

ROLES = ("SUPER_ADMIN", "SCHOOL_ADMIN", "TEACHER", "STUDENT", "PARENT")
ADMIN_ROLES = ("SUPER_ADMIN", "SCHOOL_ADMIN")


class SessionContext(BaseModel):
    """Who is calling, as asserted by the web app in front of this API."""
    role: str
    school_id: Optional[int] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == "SUPER_ADMIN"

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def published_only(self) -> bool:
        # students and parents never see unpublished results
        return self.role in ("STUDENT", "PARENT")

    def scope_school_id(self) -> Optional[int]:
        """School to partition queries by; None means every school (super admin)."""
        return None if self.is_super_admin else self.school_id


def _unauthorized(detail: str):
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def require_session(
    authorization: AuthHeader = None,
    role: RoleHeader = None,
    x_school_id: SchoolHeader = None,
) -> SessionContext:
    if not authorization:
        raise _unauthorized("Missing Authorization header")

    # "Bearer <token>"
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise _unauthorized("Invalid Authorization header format")

    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid auth scheme")

    # constant time comparison
    if not hmac.compare_digest(token.strip(), settings.INTERNAL_TOKEN):
        raise _unauthorized("Invalid token")

    if not role or role.upper() not in ROLES:
        raise _unauthorized("Missing or unknown user role")

    role = role.upper()
    if role != "SUPER_ADMIN" and x_school_id is None:
        raise _unauthorized("Missing school for this user")

    return SessionContext(role=role, school_id=x_school_id)


def require_admin(ctx: SessionContext = Depends(require_session)) -> SessionContext:
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return ctx


def ensure_school_access(ctx: SessionContext, school_id: int) -> None:
    if not ctx.is_super_admin and ctx.school_id != school_id:
        raise HTTPException(status_code=403, detail="Access denied")
