from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ..common.logging import get_logger
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError
from .context import RequestContext
from .cursor import CursorCodec
from .spec import QuerySpec

log = get_logger(__name__)


@dataclass(frozen=True)
class PageWindow:
    """Relay-style window: first/after pages forward, last/before backward."""

    first: Optional[int] = None
    after: Optional[str] = None
    last: Optional[int] = None
    before: Optional[str] = None

    @property
    def is_forward(self) -> bool:
        # Forward wins when both directions are supplied.
        if self.first is not None or self.after is not None:
            return True
        return self.last is None and self.before is None


@dataclass(frozen=True)
class Edge:
    node: Any
    cursor: str


@dataclass(frozen=True)
class PageInfo:
    has_next_page: bool
    has_previous_page: bool
    start_cursor: Optional[str]
    end_cursor: Optional[str]


@dataclass(frozen=True)
class Connection:
    edges: Tuple[Edge, ...]
    page_info: PageInfo
    total_count: int

    @property
    def nodes(self) -> List[Any]:
        return [e.node for e in self.edges]


class PaginationEngine:
    """Cursor pagination over a record store with a fetch-one-extra row check.

    - ``page_size + 1`` rows are requested; an extra row means there is a
      further page in the paging direction.
    - The opposite-direction flag is true whenever a bounding cursor resolved to
      a real record. No extra query checks that rows actually exist there.
    - ``total_count`` is a separate count over the predicate, ignoring the
      window. It is not read in the same snapshot as the page.
    """

    def __init__(
        self,
        store,
        codec: Optional[CursorCodec] = None,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._store = store
        self._codec = codec or CursorCodec()
        self._default_page_size = int(default_page_size)
        self._max_page_size = int(max_page_size)

    @property
    def codec(self) -> CursorCodec:
        return self._codec

    def page_size(self, requested: Optional[int]) -> int:
        if requested is None:
            requested = self._default_page_size
        if requested < 0:
            raise ValidationError("Page size must not be negative")
        return min(int(requested), self._max_page_size)

    def paginate(self, spec: QuerySpec, window: PageWindow, *, context: RequestContext) -> Connection:
        forward = window.is_forward
        size = self.page_size(window.first if forward else window.last)
        cursor = window.after if forward else window.before

        # Backward pages walk the reversed order away from the cursor.
        query = spec if forward else spec.reversed()

        bound = None
        if cursor is not None:
            bound = self._codec.decode(cursor, query, context.employees)
            if bound is None:
                log.info("Cursor %s no longer resolves to a record; paging from the start", cursor)

        rows = list(self._store.find(query.predicate, query.order, limit=size + 1, after=bound))
        has_more = len(rows) > size
        rows = rows[:size]
        if not forward:
            rows.reverse()

        for row in rows:
            context.employees.prime(row.id, row)

        edges = tuple(Edge(node=row, cursor=self._codec.encode(row)) for row in rows)
        bounded = bound is not None
        page_info = PageInfo(
            has_next_page=has_more if forward else bounded,
            has_previous_page=bounded if forward else has_more,
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
        )

        total_count = self._store.count(spec.predicate)
        return Connection(edges=edges, page_info=page_info, total_count=total_count)

    def fetch(self, spec: QuerySpec, *, limit: int, context: RequestContext) -> List[Any]:
        """Plain top-N read in ``spec`` order (no cursors, no count)."""
        rows = list(self._store.find(spec.predicate, spec.order, limit=self.page_size(limit)))
        for row in rows:
            context.employees.prime(row.id, row)
        return rows
