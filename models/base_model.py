#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the capture API models.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps set by the database
- kwargs constructor so models can be built without a session

Notes:
- We use server-side defaults (func.now()) for bookkeeping timestamps.
- Protocol timestamps (expires_at, consumed_at, revoked_at, ...) are naive UTC
  values written by the application from utils.security.utcnow(), so SQL
  comparisons against them behave the same on SQLite and PostgreSQL.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        created_at/updated_at are left to DB defaults unless passed explicitly.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # Ensure an id exists if caller passed none
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        """Human-friendly representation including id and fields."""
        fields = {k: v for k, v in self.__dict__.items() if k != "_sa_instance_state"}
        return f"[{self.__class__.__name__}] ({self.id}) {fields}"
