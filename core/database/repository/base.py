"""Base repository with dependency injection pattern."""

from typing import Any, Generic, TypeVar

from sqlmodel import Session, SQLModel

from core.log import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=SQLModel)


class BaseRepository(Generic[T]):
    """Base repository with dependency injection pattern."""

    def __init__(self, model: type[T], db: Session) -> None:
        self.model = model
        self.db = db

    def create(self, obj: T) -> T:
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            logger.debug(f"Created {self.model.__name__} {self._pk_value(obj)}")
        except Exception as exc:
            self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {exc}")
            raise

        return obj

    def get_by_id(self, obj_id: Any) -> T | None:
        return self.db.get(self.model, obj_id)

    def _pk_value(self, obj: T) -> Any:
        mapper = self.model.__mapper__  # type: ignore[attr-defined]
        return mapper.primary_key_from_instance(obj)
