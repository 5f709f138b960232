"""
Account lifecycle transitions outside the VIP state machine.

- Email verification: issue a one-time code, exchange it for email_verified.
- Deletion: self-service or admin, single or bulk. The stored profile image
  is released first (best effort), then the record, then the holder is told.
- Profile image replacement: upload, point the account at the new object,
  release the previous one.
- Admin role changes: grant or revoke is_admin and tell the holder.

Authentication is not done here: callers pass the already-authenticated
Actor performing the request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from errors import DependencyError, ForbiddenError, NotFoundError, ValidationError
from infrastructure.email.protocol import NotificationKind
from infrastructure.storage.protocol import ObjectStore
from repositories.account_repository import AccountRepository
from schemas.models.account import AccountDoc
from services.assets import release_asset
from services.notifier import Notifier
from shared.crypto import hash_token, verify_token
from shared.datetime_utils import utcnow
from shared.generators import generate_otp_code, generate_profile_image_key
from shared.logging import get_logger
from shared.validators import decode_image_payload, parse_object_id, validate_email

log = get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    """The authenticated account making a request."""

    id: str
    email: str
    is_admin: bool = False
    is_authorized: bool = False


@dataclass
class BulkDeletionResult:
    deleted: list[str] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class AccountService:
    def __init__(
        self,
        accounts: AccountRepository,
        store: ObjectStore,
        notifier: Notifier,
        admin_email: str = "",
        code_ttl: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._accounts = accounts
        self._store = store
        self._notifier = notifier
        self._admin_email = admin_email.lower()
        self._code_ttl = code_ttl
        self._clock = clock

    def _is_default_admin(self, account: AccountDoc) -> bool:
        return bool(self._admin_email) and account.email.lower() == self._admin_email

    async def _get(self, account_id: str) -> AccountDoc:
        oid = parse_object_id(account_id)
        if oid is None:
            raise ValidationError("Invalid account id", field="account_id")
        account = await self._accounts.find_by_id(oid)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    # ── Email verification ──────────────────────────────────────────────────

    async def issue_verification_code(self, email: str) -> bool:
        """Store a fresh code for *email* and mail it.

        Returns whether the email was delivered; the code is stored either way.
        """
        if not validate_email(email):
            raise ValidationError("Invalid email format", field="email")
        account = await self._accounts.find_by_email(email)
        if account is None:
            raise NotFoundError("Account not found")
        if account.email_verified:
            raise ValidationError("Email is already verified", field="email")

        code = generate_otp_code()
        updated = await self._accounts.update_by_id(
            account.id,
            {
                "verification_code": hash_token(code),
                "verification_code_expiry": self._clock() + self._code_ttl,
            },
        )
        if updated is None:
            raise NotFoundError("Account not found")

        log.info("verification_code_issued", account_id=updated.account_id)
        return await self._notifier.notify(
            NotificationKind.VERIFICATION_CODE,
            updated,
            {"code": code, "ttl_minutes": int(self._code_ttl.total_seconds() // 60)},
        )

    async def verify_email(self, email: str, code: str) -> AccountDoc:
        account = await self._accounts.find_by_email(email)
        if (
            account is None
            or not account.verification_code
            or account.verification_code_expiry is None
            or account.verification_code_expiry <= self._clock()
            or not verify_token(code or "", account.verification_code)
        ):
            raise ValidationError("Invalid or expired verification code", field="code")

        updated = await self._accounts.update_by_id(
            account.id,
            {"email_verified": True},
            unset_fields=("verification_code", "verification_code_expiry"),
        )
        if updated is None:
            raise NotFoundError("Account not found")
        log.info("email_verified", account_id=updated.account_id)
        return updated

    # ── Deletion ─────────────────────────────────────────────────────────────

    async def delete_account(self, account_id: str, actor: Actor) -> None:
        account = await self._get(account_id)
        deleted_by_admin = actor.id != account.account_id
        if deleted_by_admin and not actor.is_admin:
            raise ForbiddenError("Unauthorized to delete this account")
        if self._is_default_admin(account):
            raise ForbiddenError("Default admin account cannot be deleted")

        await self._delete(account, actor, deleted_by_admin=deleted_by_admin)

    async def bulk_delete_accounts(
        self, account_ids: list[str], actor: Actor
    ) -> BulkDeletionResult:
        if not isinstance(account_ids, list) or not account_ids:
            raise ValidationError("A non-empty list of account ids is required")
        if not actor.is_admin:
            raise ForbiddenError("Only administrators can perform bulk deletions")

        if self._admin_email:
            default_admin = await self._accounts.find_by_email(self._admin_email)
            if default_admin is not None and default_admin.account_id in account_ids:
                raise ForbiddenError(
                    "Default admin account cannot be included in bulk deletion"
                )

        result = BulkDeletionResult()
        for account_id in account_ids:
            try:
                account = await self._get(account_id)
                await self._delete(account, actor, deleted_by_admin=True, bulk=True)
                result.deleted.append(account_id)
            except Exception as e:
                reason = getattr(e, "message", str(e))
                result.failed.append({"account_id": account_id, "reason": reason})
                log.warning(
                    "bulk_delete_item_failed",
                    account_id=account_id,
                    reason=reason,
                    error_type=type(e).__name__,
                )

        log.info(
            "bulk_delete_completed",
            actor_id=actor.id,
            deleted=result.deleted_count,
            failed=result.failed_count,
        )
        return result

    async def _delete(
        self,
        account: AccountDoc,
        actor: Actor,
        *,
        deleted_by_admin: bool,
        bulk: bool = False,
    ) -> None:
        await release_asset(
            self._store, account.profile_image, account_id=account.account_id
        )
        if not await self._accounts.delete_by_id(account.id):
            raise NotFoundError("Account not found")

        log.info(
            "account_deleted",
            account_id=account.account_id,
            actor_id=actor.id,
            by_admin=deleted_by_admin,
        )
        self._notifier.dispatch(
            NotificationKind.ACCOUNT_DELETED,
            account,
            {
                "deleted_by_admin": deleted_by_admin,
                "message": _deletion_message(
                    deleted_by_admin, bulk, self._clock(), actor.email
                ),
            },
        )

    # ── Admin role ───────────────────────────────────────────────────────────

    async def set_admin(
        self, account_id: str, make_admin: bool, actor: Actor
    ) -> AccountDoc:
        if not isinstance(make_admin, bool):
            raise ValidationError("make_admin must be a boolean", field="make_admin")
        if not actor.is_admin:
            raise ForbiddenError("Only admins can modify admin privileges")
        account = await self._get(account_id)
        if self._is_default_admin(account):
            raise ForbiddenError("Default admin status cannot be modified")
        if not make_admin and not actor.is_authorized:
            raise ForbiddenError("Only authorized admin can remove admin privileges")

        updated = await self._accounts.update_by_id(account.id, {"is_admin": make_admin})
        if updated is None:
            raise NotFoundError("Account not found")

        log.info(
            "admin_status_changed",
            account_id=updated.account_id,
            actor_id=actor.id,
            is_admin=make_admin,
        )
        self._notifier.dispatch(
            NotificationKind.ADMIN_CHANGED, updated, _admin_change_payload(make_admin)
        )
        return updated

    # ── Profile image ────────────────────────────────────────────────────────

    async def update_profile_image(self, account_id: str, image: str) -> AccountDoc:
        """Replace the account's profile image with a base64-encoded upload."""
        account = await self._get(account_id)
        data = decode_image_payload(image)
        if data is None:
            raise ValidationError("Image is required", field="image")

        key = generate_profile_image_key(account.account_id, self._clock())
        try:
            url = await self._store.upload(key, data, "image/jpeg")
        except Exception as e:
            log.error(
                "profile_image_upload_failed",
                account_id=account.account_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DependencyError("Profile image upload failed") from e

        updated = await self._accounts.update_by_id(account.id, {"profile_image": url})
        if updated is None:
            # Account vanished mid-request; don't leave the upload orphaned
            await release_asset(self._store, url, account_id=account.account_id)
            raise NotFoundError("Account not found")

        if account.profile_image and account.profile_image != url:
            await release_asset(
                self._store, account.profile_image, account_id=account.account_id
            )
        return updated


def _deletion_message(
    deleted_by_admin: bool, bulk: bool, when: datetime, admin_email: Optional[str]
) -> str:
    stamp = when.strftime("%d %b %Y, %H:%M UTC")
    if not deleted_by_admin:
        return f"As requested, your account has been successfully deleted on {stamp}."
    message = f"Your account has been deleted by an administrator ({admin_email}) on {stamp}."
    if bulk:
        message += "\nThis action was part of a bulk account cleanup process."
    return message


def _admin_change_payload(make_admin: bool) -> dict:
    if make_admin:
        return {
            "make_admin": True,
            "subject": "Admin Access Granted",
            "title": "Welcome New Admin",
            "message": "You now have admin privileges. "
            "Access the admin panel to manage site features.",
        }
    return {
        "make_admin": False,
        "subject": "Admin Access Removed",
        "title": "Admin Access Removed",
        "message": "Your admin access has been revoked. "
        "You no longer have access to admin features.",
    }
