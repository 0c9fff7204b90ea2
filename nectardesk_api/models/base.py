"""
Declarative base and column mixins shared by all tables
"""
import uuid

from sqlalchemy import Column, DateTime, Uuid, ForeignKey, func
from sqlalchemy.orm import declared_attr

from ..core.database import Base


class BaseModel(Base):
    """Abstract root: every table has a UUID primary key"""
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    def __repr__(self):
        return f"<{type(self).__name__} {self.id}>"


class TenantMixin:
    """Rows owned by exactly one organization, removed with it"""

    @declared_attr
    def organization_id(cls):
        return Column(
            Uuid(as_uuid=True),
            ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )


class TimestampMixin:
    # Server-side defaults; updated_at is bumped by the ORM on every UPDATE
    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @declared_attr
    def updated_at(cls):
        return Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
