from models.base_model import Base, BaseModel
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship


class User(BaseModel, Base):
    __tablename__ = "users"
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(100), nullable=False)

    settings = relationship(
        "UserSettings",
        back_populates="user",
        uselist=False,
        passive_deletes=True
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
