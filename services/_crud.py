from __future__ import annotations
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError


@contextmanager
def unit_of_work(db: Session, *, conflict_message: str | None = None, conflict_field: str | None = None) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing.

    A unique-constraint hit surfaces as ConflictError when ``conflict_message`` is given.
    """
    try:
        yield db
        db.commit()
    except IntegrityError:
        db.rollback()
        if conflict_message:
            raise ConflictError(conflict_message, field=conflict_field) from None
        raise
    except Exception:
        db.rollback()
        raise


def commit_refresh(db: Session, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def plain(value: Any) -> Any:
    """Enum members -> their value, anything else unchanged."""
    if isinstance(value, Enum):
        return value.value
    return value


def apply_changes(obj, changes: dict[str, Any]) -> list[str]:
    applied = []
    for key, value in changes.items():
        setattr(obj, key, plain(value))
        applied.append(key)
    return applied
