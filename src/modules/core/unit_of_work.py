"""Unit of work over Django transactions.

Services hand a closure of storage operations to ``UnitOfWork.run``; all of
it commits or none of it does.
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from django.db import DEFAULT_DB_ALIAS, transaction

T = TypeVar("T")


class UnitOfWork:
    def __init__(self, using: Optional[str] = None) -> None:
        self._using = using or DEFAULT_DB_ALIAS

    def run(self, operation: Callable[[], T]) -> T:
        with transaction.atomic(using=self._using):
            return operation()
