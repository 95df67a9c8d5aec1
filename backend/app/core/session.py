from dataclasses import dataclass
from typing import Optional

from ..models.user import UserRole


@dataclass(frozen=True)
class SessionContext:
    """Identity of the caller, resolved once per request from the bearer token."""

    user_id: int
    email: str
    role: UserRole
    vendor_id: Optional[int] = None
    token_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_vendor(self) -> bool:
        return self.vendor_id is not None
