"""Generic repository for catalog entities (menu items, ingredients, delivery areas)."""
import logging
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.db.database import atomic, bounded
from app.db.models import utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class CatalogRepository(Generic[ModelT]):
    """
    CRUD over one catalog table.

    Subclasses set ``model`` and may declare the boolean flag fields that
    ``set_flag`` accepts and the column whose values must be unique.
    """

    model: Type[ModelT]
    label: str = "Record"
    flag_fields: Tuple[str, ...] = ()
    unique_field: Optional[str] = None

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout

    def _base_query(self):
        return select(self.model)

    def _ordering(self) -> list:
        return [self.model.name]

    async def list(self, **filters: Any) -> List[ModelT]:
        """List records matching every non-None filter, in catalog order."""
        query = self._base_query()
        for field, value in filters.items():
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            query = query.where(getattr(self.model, field) == value)
        result = await bounded(self.db.execute(query.order_by(*self._ordering())), self.timeout)
        return list(result.scalars().all())

    async def get(self, record_id: int) -> ModelT:
        """Get a record by ID or raise NotFoundError."""
        result = await bounded(
            self.db.execute(
                self._base_query()
                .where(self.model.id == record_id)
                .execution_options(populate_existing=True)
            ),
            self.timeout,
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(f"{self.label} {record_id} not found")
        return record

    async def create(self, fields: Dict[str, Any]) -> ModelT:
        async with atomic(self.db, self.timeout):
            await self._check_unique(fields)
            record = self.model()
            await self._apply(record, fields)
            self.db.add(record)
            await bounded(self.db.flush(), self.timeout)
            record_id = record.id
        logger.info(f"[CATALOG] {self.label} {record_id} created")
        return await self.get(record_id)

    async def update(self, record_id: int, fields: Dict[str, Any]) -> ModelT:
        """Apply a partial update. Keys absent from ``fields`` are untouched."""
        async with atomic(self.db, self.timeout):
            record = await self.get(record_id)
            await self._check_unique(fields, exclude_id=record_id)
            await self._apply(record, fields)
            record.updated_at = utcnow()
        logger.info(f"[CATALOG] {self.label} {record_id} updated - fields: {sorted(fields)}")
        return await self.get(record_id)

    async def set_flag(self, record_id: int, field: str, value: Any) -> ModelT:
        if field not in self.flag_fields:
            raise ValidationError(f"'{field}' is not a flag of {self.label.lower()}")
        if not isinstance(value, bool):
            raise ValidationError(f"'{field}' must be a boolean")
        return await self.update(record_id, {field: value})

    async def delete(self, record_id: int) -> None:
        async with atomic(self.db, self.timeout):
            record = await self.get(record_id)
            await self._before_delete(record)
            await bounded(self.db.delete(record), self.timeout)
        logger.info(f"[CATALOG] {self.label} {record_id} deleted")

    async def _apply(self, record: ModelT, fields: Dict[str, Any]) -> None:
        for field, value in fields.items():
            setattr(record, field, value.value if isinstance(value, Enum) else value)

    async def _before_delete(self, record: ModelT) -> None:
        pass

    async def _check_unique(self, fields: Dict[str, Any], exclude_id: Optional[int] = None) -> None:
        if self.unique_field is None or fields.get(self.unique_field) is None:
            return
        value = fields[self.unique_field]
        column = getattr(self.model, self.unique_field)
        query = select(self.model.id).where(column == value)
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)
        existing = await bounded(self.db.scalar(query.limit(1)), self.timeout)
        if existing is not None:
            raise ConflictError(f"{self.label} with {self.unique_field} '{value}' already exists")
