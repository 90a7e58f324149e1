"""Per-request state handed to the query engine.

Nothing here is shared between requests: the Flask layer builds one
RequestContext per request (see ``main.create_app``), and the loaders' caches
die with it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, List, Optional, Sequence, TypeVar

from ..auth.model import Actor

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BatchLoader(Generic[K, V]):
    """Memoizing loader scoped to one request.

    ``batch_fn`` receives the keys not cached yet and returns values in the same
    order (None for missing keys).
    """

    def __init__(self, batch_fn: Callable[[Sequence[K]], Sequence[Optional[V]]]):
        self._batch_fn = batch_fn
        self._cache: Dict[K, Optional[V]] = {}

    def load(self, key: K) -> Optional[V]:
        return self.load_many([key])[0]

    def load_many(self, keys: Sequence[K]) -> List[Optional[V]]:
        missing = [k for k in dict.fromkeys(keys) if k not in self._cache]
        if missing:
            for k, v in zip(missing, self._batch_fn(missing)):
                self._cache[k] = v
        return [self._cache[k] for k in keys]

    def prime(self, key: K, value: Optional[V]) -> None:
        self._cache[key] = value

    def clear(self, key: K) -> None:
        self._cache.pop(key, None)


@dataclass
class RequestContext:
    actor: Optional[Actor]
    employees: BatchLoader
    users: BatchLoader

    @classmethod
    def create(cls, actor: Optional[Actor], *, employee_store, user_store) -> "RequestContext":
        return cls(
            actor=actor,
            employees=BatchLoader(employee_store.get_by_ids),
            users=BatchLoader(user_store.get_by_ids),
        )
