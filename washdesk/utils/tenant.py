# washdesk/utils/tenant.py
"""
Caller identity, as resolved by the upstream auth gateway.

Staff requests carry X-Tenant-Id and X-User-Role; public customer requests
carry X-Customer-Id. Routers depend on these and pass the tenant id down to
every service call.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from washdesk.services.errors import Forbidden, Unauthorized

STAFF_ROLES = {"OWNER", "MANAGER", "ATTENDANT"}


@dataclass
class TenantContext:
    tenant_id: int
    role: str

    @property
    def is_owner(self) -> bool:
        return self.role == "OWNER"


def _parse_id(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def get_tenant_context(
    x_tenant_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> TenantContext:
    """FastAPI dependency — any authenticated staff member."""
    tenant_id = _parse_id(x_tenant_id)
    role = (x_user_role or "").upper()
    if tenant_id is None or role not in STAFF_ROLES:
        raise Unauthorized("Not authenticated")
    return TenantContext(tenant_id=tenant_id, role=role)


def require_owner(ctx: TenantContext) -> TenantContext:
    if not ctx.is_owner:
        raise Forbidden("Only the owner can do this")
    return ctx


def get_customer_account_id(x_customer_id: Optional[str] = Header(None)) -> int:
    """FastAPI dependency — end-customer session for the public booking flow."""
    account_id = _parse_id(x_customer_id)
    if account_id is None:
        raise Unauthorized("Not authenticated")
    return account_id
