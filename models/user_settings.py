from sqlalchemy import Column, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import Base, BaseModel

DEFAULT_DIGEST_TIME = "08:00"
DEFAULT_TIMEZONE = "America/Los_Angeles"


class UserSettings(BaseModel, Base):
    """Per-user delivery preferences for the daily digest."""
    __tablename__ = "user_settings"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    daily_digest_enabled = Column(Boolean, nullable=False, default=True)
    daily_digest_time = Column(String(5), nullable=False, default=DEFAULT_DIGEST_TIME)
    timezone = Column(String(64), nullable=False, default=DEFAULT_TIMEZONE)

    user = relationship("User", back_populates="settings")
