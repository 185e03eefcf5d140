"""Tenant scoping: which church's rows a principal may see or touch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from sqlalchemy import Select, false
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.core.roles import RoleName

T = TypeVar("T")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a request."""

    id: int
    email: str
    role: Optional[RoleName]
    church_id: Optional[int]
    full_name: str = ""

    @property
    def has_cross_tenant_bypass(self) -> bool:
        return self.role is not None and self.role.has_cross_tenant_bypass


def apply_tenant_filter(stmt: Select, principal: Principal, church_column: Any) -> Select:
    """Scope a select to the principal's church.

    The cross-tenant role gets the statement back unmodified. Any other
    principal without a church gets an always-false predicate, never an
    unscoped query.
    """
    if principal.has_cross_tenant_bypass:
        return stmt
    if principal.church_id is None:
        return stmt.where(false())
    return stmt.where(church_column == principal.church_id)


def _normalize_id(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def belongs_to_church(principal: Principal, church_id: Any) -> bool:
    if principal.has_cross_tenant_bypass:
        return True
    own = _normalize_id(principal.church_id)
    target = _normalize_id(church_id)
    return own is not None and target is not None and own == target


def ensure_church_access(principal: Principal, church_id: Any) -> None:
    if not belongs_to_church(principal, church_id):
        raise ForbiddenError("You do not have access to this church")


def resolve_church_id(principal: Principal, requested: Optional[int]) -> int:
    """Pick the owning church for a new record."""
    if principal.has_cross_tenant_bypass:
        if requested is None:
            raise BadRequestError("church_id is required")
        return requested

    if principal.church_id is None:
        raise BadRequestError("User has no church assigned")
    if requested is not None and not belongs_to_church(principal, requested):
        raise ForbiddenError("You do not have access to this church")
    return principal.church_id


def get_owned_or_404(
    db: Session,
    model: type[T],
    record_id: int,
    principal: Principal,
    resource: str,
    owner: str = "church_id",
) -> T:
    """Load a tenant-owned row by id: 404 when missing, then 403 when foreign.

    ``owner`` names the attribute holding the church id (``id`` for churches).
    """
    record = db.get(model, record_id)
    if record is None:
        raise NotFoundError(resource, record_id)
    ensure_church_access(principal, getattr(record, owner))
    return record
