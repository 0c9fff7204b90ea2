"""
User models
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampMixin


class User(BaseModel, TimestampMixin):
    """Login account; belongs to at most one organization"""
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    organization_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    role = Column(String(50), default="user", nullable=False)  # admin, manager, user
    is_master_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime(timezone=True))

    # Password reset (token stored hashed)
    password_reset_token = Column(String(128), index=True)
    password_reset_expires = Column(DateTime(timezone=True))

    # Relationships
    organization = relationship("Organization", back_populates="users", foreign_keys=[organization_id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
