"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract.  Every
    service receives a SQLAlchemy ``Session`` and persists with
    ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back.  The caller (``InventoryService`` or a
    test harness) owns commit/rollback, which is what makes a read-validate-
    write sequence spanning several services one atomic unit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide paged read views; those live in ``selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
