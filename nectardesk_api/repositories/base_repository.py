"""
Shared persistence helpers for tenant-owned tables
"""
from typing import TypeVar, Generic, Type, Optional, List, Dict, Any
from sqlalchemy.orm import Session, Query
from sqlalchemy import func
from uuid import UUID
import logging

from ..models.base import BaseModel
from ..core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """CRUD over one model, optionally narrowed to a single organization"""

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def scoped(self, organization_id: Optional[UUID] = None) -> Query:
        """Query restricted to one organization; None means unrestricted"""
        query = self.db.query(self.model)
        if organization_id is None:
            return query
        return query.filter(self.model.organization_id == organization_id)

    def _apply_filters(self, query: Query, filters: Optional[Dict[str, Any]]) -> Query:
        # Unknown columns and None values are ignored
        for column_name, wanted in (filters or {}).items():
            column = getattr(self.model, column_name, None)
            if column is not None and wanted is not None:
                query = query.filter(column == wanted)
        return query

    def _persist(self, instance: ModelType) -> ModelType:
        self.db.add(instance)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def get(self, id: UUID, organization_id: Optional[UUID] = None) -> Optional[ModelType]:
        return self.scoped(organization_id).filter(self.model.id == id).first()

    def get_or_404(self, id: UUID, organization_id: Optional[UUID] = None) -> ModelType:
        found = self.get(id, organization_id)
        if found is None:
            raise NotFoundError(self.model.__name__, str(id))
        return found

    def get_multi(
        self,
        *,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        order_desc: bool = False
    ) -> List[ModelType]:
        query = self._apply_filters(self.db.query(self.model), filters)

        sort_column = getattr(self.model, order_by, None) if order_by else None
        if sort_column is not None:
            query = query.order_by(sort_column.desc() if order_desc else sort_column.asc())

        return query.offset(skip).limit(limit).all()

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        total = self._apply_filters(self.db.query(func.count(self.model.id)), filters).scalar()
        return total or 0

    def create(self, *, obj_in: Dict[str, Any]) -> ModelType:
        return self._persist(self.model(**obj_in))

    def update(self, *, db_obj: ModelType, obj_in: Dict[str, Any], skip_none: bool = True) -> ModelType:
        """Copy known attributes from obj_in; None values are skipped unless skip_none is False"""
        changes = {
            name: value for name, value in obj_in.items()
            if hasattr(db_obj, name) and not (skip_none and value is None)
        }
        for name, value in changes.items():
            setattr(db_obj, name, value)
        return self._persist(db_obj)

    def delete(self, *, id: UUID) -> bool:
        doomed = self.get(id)
        if doomed is None:
            return False
        self.db.delete(doomed)
        self.db.commit()
        logger.debug(f"Deleted {self.model.__name__} {id}")
        return True

    def exists(self, id: UUID) -> bool:
        hit = self.db.query(self.model.id).filter(self.model.id == id).limit(1).scalar()
        return hit is not None
