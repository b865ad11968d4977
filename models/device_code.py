"""
DeviceCode model: one-time pairing codes shown to a signed-in web user and
typed into the mobile app.
Fields:
- user_id (String(36)) - FK to users.id, the account the code pairs into
- code_hash - sha256 hex of the plaintext code (plaintext is never stored)
- expires_at - creation + DEVICE_CODE_EXPIRES
- consumed_at - set exactly once by a successful exchange
"""
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey
from models.base_model import BaseModel, Base


class DeviceCode(BaseModel, Base):
    __tablename__ = "device_codes"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    code_hash = Column(String(64), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    consumed_at = Column(DateTime, nullable=True)

    def is_usable(self, now: datetime) -> bool:
        return self.consumed_at is None and now < self.expires_at

    def __repr__(self):
        return f"<DeviceCode id={self.id} user={self.user_id} consumed={self.consumed_at is not None}>"
