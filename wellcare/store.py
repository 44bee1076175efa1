# wellcare/store.py
"""
Key-value record store on top of the ``records`` table.

Every entity type owns a disjoint key prefix. Single writes commit on their
own; writes issued inside ``atomic()`` commit together or are rolled back
together, which is how paired records (consent indices, profile + email
index) are kept from diverging.
"""
from __future__ import annotations
import copy
import logging
from contextlib import contextmanager

from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError

from .models import Record

logger = logging.getLogger(__name__)


class RecordStore:
    def __init__(self, session):
        self.session = session
        self._depth = 0

    def get(self, key: str) -> dict | None:
        row = self.session.get(Record, key)
        if row is None:
            return None
        return copy.deepcopy(row.value)

    def set(self, key: str, value: dict) -> dict:
        value = copy.deepcopy(value)
        row = self.session.get(Record, key)
        if row is None:
            self.session.add(Record(key=key, value=value))
        else:
            row.value = value
        self._commit()
        return value

    def insert(self, key: str, value: dict) -> dict:
        """Write a new key; raises ``IntegrityError`` if it already exists, even if committed concurrently."""
        value = copy.deepcopy(value)
        try:
            self.session.execute(insert(Record).values(key=key, value=value))
        except IntegrityError:
            if not self._depth:
                self.session.rollback()
            raise
        self._commit()
        return value

    def delete(self, key: str) -> bool:
        row = self.session.get(Record, key)
        if row is None:
            return False
        self.session.delete(row)
        self._commit()
        return True

    def scan_by_prefix(self, prefix: str) -> list[dict]:
        rows = (
            self.session.query(Record)
            .filter(Record.key.startswith(prefix, autoescape=True))
            .order_by(Record.key)
            .all()
        )
        return [copy.deepcopy(r.value) for r in rows]

    @contextmanager
    def atomic(self):
        """Group writes into one transaction; nested blocks join the outer one."""
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                self.session.rollback()
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self._commit()

    def _commit(self):
        if self._depth:
            self.session.flush()
            return
        try:
            self.session.commit()
        except Exception:
            logger.exception("Record store commit failed")
            self.session.rollback()
            raise
