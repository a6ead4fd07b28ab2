"""User model definitions."""

from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, String
from scidatahub.database import Base, utcnow


class User(Base):
    """Represents a registered platform user."""
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(String, default="citizen", nullable=False)  # citizen/researcher/reviewer/admin
    organization = Column(String)
    bio = Column(String(500))
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    permissions = Column(JSON, default=list, nullable=False)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
