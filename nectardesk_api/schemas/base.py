"""
Base schemas with common functionality
"""
import math
from pydantic import BaseModel, model_serializer
from typing import Any, Dict
from uuid import UUID

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


class BaseSchema(BaseModel):
    """Base schema class with UUID serialization"""

    @model_serializer(mode='wrap')
    def serialize_model(self, serializer, info) -> Dict[str, Any]:
        """Custom model serializer to handle UUID conversion"""
        data = serializer(self)

        def convert_uuids(obj):
            if isinstance(obj, dict):
                return {k: convert_uuids(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_uuids(item) for item in obj]
            elif isinstance(obj, UUID):
                return str(obj)
            else:
                return obj

        return convert_uuids(data)

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, pages=math.ceil(total / limit) if limit else 0)


class MessageResponse(BaseModel):
    message: str


def clamp_limit(limit: int) -> int:
    """Page sizes above the maximum are capped rather than rejected"""
    return max(1, min(limit, MAX_PAGE_SIZE))
