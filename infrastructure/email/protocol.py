"""EmailProvider protocol - services depend on this, not the concrete implementation."""

from enum import Enum
from typing import Any, Protocol

from schemas.models.account import AccountDoc


class NotificationKind(str, Enum):
    VIP_ACTIVATED = "vip-activated"
    VIP_DEACTIVATED = "vip-deactivated"
    VIP_EXPIRED = "vip-expired"
    VIP_EXPIRING_SOON = "vip-expiring-soon"
    VERIFICATION_CODE = "verification-code"
    ACCOUNT_DELETED = "account-deleted"
    ADMIN_CHANGED = "admin-changed"


class EmailProvider(Protocol):
    async def send(
        self, kind: NotificationKind, account: AccountDoc, payload: dict[str, Any]
    ) -> bool: ...
