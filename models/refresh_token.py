"""
RefreshToken model: one row per paired device session.
Fields:
- user_id (String(36)) - FK to users.id
- token_hash - sha256 hex of the current plaintext refresh token; replaced in
  place on every rotation so only the latest value ever matches
- device_id / device_name - opaque device identity minted at exchange time
- last_used_at, expires_at (sliding, renewed on refresh), revoked_at
Revoked rows are kept for audit, never deleted.
"""
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey
from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    device_id = Column(String(64), nullable=False, index=True)
    device_name = Column(String(100), nullable=True)
    last_used_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)

    def is_usable(self, now: datetime) -> bool:
        return self.revoked_at is None and now < self.expires_at

    def __repr__(self):
        return f"<RefreshToken id={self.id} device={self.device_id} revoked={self.revoked_at is not None}>"
