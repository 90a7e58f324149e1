"""Opaque pagination cursors.

A cursor only carries the record identifier (``employee:<id>``, URL-safe
base64). Its position in a QuerySpec's order is resolved at decode time by
loading the record, so a cursor stays valid when the sort field of the record
changes between two page requests. The price is one point lookup per bound.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Optional, Protocol

from ..core.constants import CURSOR_PREFIX
from ..core.exceptions import ValidationError
from .spec import PositionKey, QuerySpec


class RecordLoader(Protocol):
    def load(self, record_id: int) -> Optional[Any]:
        ...


class CursorCodec:
    def __init__(self, prefix: str = CURSOR_PREFIX):
        self._prefix = prefix

    def encode(self, record: Any) -> str:
        raw = f"{self._prefix}:{record.id}".encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    def decode_id(self, cursor: str) -> int:
        try:
            raw = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
            prefix, _, value = raw.partition(":")
            if prefix != self._prefix:
                raise ValueError(f"unexpected cursor prefix {prefix!r}")
            return int(value)
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise ValidationError(f"Invalid cursor: {cursor!r}") from e

    def decode(self, cursor: str, spec: QuerySpec, loader: RecordLoader) -> Optional[PositionKey]:
        """Resolve a cursor to its position under ``spec``.

        Returns None when the record behind the cursor no longer exists; callers
        treat that as "no bound".
        """
        record = loader.load(self.decode_id(cursor))
        if record is None:
            return None
        return spec.position_of(record)
