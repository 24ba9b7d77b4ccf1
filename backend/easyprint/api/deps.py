from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException

from easyprint.models.enums import UserRole


@dataclass(frozen=True)
class Identity:
    email: str
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.STAFF, UserRole.ADMIN)


def optional_identity(
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Optional[Identity]:
    """Identity forwarded by the auth proxy in front of this service."""
    if not x_user_email:
        return None
    try:
        role = UserRole((x_user_role or UserRole.USER.value).upper())
    except ValueError:
        raise HTTPException(status_code=403, detail="Unknown role")
    return Identity(email=x_user_email.strip().lower(), role=role)


def require_identity(
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Identity:
    identity = optional_identity(x_user_email, x_user_role)
    if identity is None:
        raise HTTPException(status_code=401, detail="Unauthorized - Please log in")
    return identity


def require_staff(
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Identity:
    identity = require_identity(x_user_email, x_user_role)
    if not identity.is_staff:
        raise HTTPException(status_code=403, detail="Forbidden")
    return identity


def require_admin(
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Identity:
    identity = require_identity(x_user_email, x_user_role)
    if identity.role is not UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Forbidden - Admin only")
    return identity
