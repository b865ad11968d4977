"""
SecretStore: persistence for pairing codes and refresh tokens.

Rows are always looked up by the sha256 hash of the secret, never by the
plaintext. Every state transition (consume, rotate, revoke) is a single
conditional UPDATE whose affected-row count tells the caller whether it won,
so two requests racing on the same secret can never both succeed.

Each method commits its own unit of work and leaves the objects already in the
session matching the database. SQLAlchemy errors roll the session
back and propagate to the caller.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from models.device_code import DeviceCode
from models.refresh_token import RefreshToken


class SecretStore:

    def __init__(self, storage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    def _reload(self, cls, row_id: str) -> None:
        # Bulk UPDATEs bypass the identity map; re-read the row a caller may hold
        self.session.get(cls, row_id, populate_existing=True)

    # device codes

    def create_device_code(self, user_id: str, code_hash: str, expires_at: datetime) -> DeviceCode:
        code = DeviceCode(user_id=user_id, code_hash=code_hash, expires_at=expires_at)
        self.storage.new(code)
        self.storage.save()
        return code

    def find_usable_device_code(self, code_hash: str, now: datetime) -> Optional[DeviceCode]:
        return (
            self.session.query(DeviceCode)
            .filter(
                DeviceCode.code_hash == code_hash,
                DeviceCode.consumed_at.is_(None),
                DeviceCode.expires_at > now,
            )
            .first()
        )

    def consume_device_code(self, code_id: str, now: datetime) -> bool:
        """Mark a code consumed; True only for the caller that flipped it."""
        rows = (
            self.session.query(DeviceCode)
            .filter(
                DeviceCode.id == code_id,
                DeviceCode.consumed_at.is_(None),
                DeviceCode.expires_at > now,
            )
            .update({DeviceCode.consumed_at: now}, synchronize_session="fetch")
        )
        self.storage.save()
        if rows:
            self._reload(DeviceCode, code_id)
        return rows == 1

    def purge_stale_device_codes(self, user_id: str, now: datetime) -> int:
        """Delete a user's expired or already consumed codes."""
        rows = (
            self.session.query(DeviceCode)
            .filter(DeviceCode.user_id == user_id)
            .filter((DeviceCode.expires_at <= now) | DeviceCode.consumed_at.isnot(None))
            .delete(synchronize_session="fetch")
        )
        self.storage.save()
        return rows

    # refresh tokens

    def create_refresh_token(
        self,
        user_id: str,
        token_hash: str,
        device_id: str,
        device_name: Optional[str],
        expires_at: datetime,
    ) -> RefreshToken:
        token = RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            device_id=device_id,
            device_name=device_name,
            expires_at=expires_at,
        )
        self.storage.new(token)
        self.storage.save()
        return token

    def find_usable_refresh_token(self, token_hash: str, now: datetime) -> Optional[RefreshToken]:
        return (
            self.session.query(RefreshToken)
            .filter(
                RefreshToken.token_hash == token_hash,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .first()
        )

    def rotate_refresh_token(
        self,
        token_id: str,
        current_hash: str,
        new_hash: str,
        new_expires_at: datetime,
        now: datetime,
    ) -> bool:
        """Swap in a new hash and expiry, keyed on the hash the caller read.

        A concurrent rotation that already replaced current_hash makes this a
        no-op returning False.
        """
        rows = (
            self.session.query(RefreshToken)
            .filter(
                RefreshToken.id == token_id,
                RefreshToken.token_hash == current_hash,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .update(
                {
                    RefreshToken.token_hash: new_hash,
                    RefreshToken.expires_at: new_expires_at,
                    RefreshToken.last_used_at: now,
                },
                synchronize_session="fetch",
            )
        )
        self.storage.save()
        if rows:
            self._reload(RefreshToken, token_id)
        return rows == 1

    def revoke_refresh_token(self, token_hash: str, now: datetime) -> bool:
        """Set revoked_at if not already set. Returns whether a row changed."""
        ids = [
            row_id
            for (row_id,) in self.session.query(RefreshToken.id).filter(
                RefreshToken.token_hash == token_hash, RefreshToken.revoked_at.is_(None)
            )
        ]
        if not ids:
            return False
        rows = (
            self.session.query(RefreshToken)
            .filter(RefreshToken.id.in_(ids), RefreshToken.revoked_at.is_(None))
            .update({RefreshToken.revoked_at: now}, synchronize_session="fetch")
        )
        self.storage.save()
        for row_id in ids:
            self._reload(RefreshToken, row_id)
        return rows > 0
