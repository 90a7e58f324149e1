from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """Authenticated principal attached to a request.

    Built by the authentication layer from a verified token or session; the
    query engine only ever sees this triple.
    """

    id: int
    role: Role
    is_active: bool = True
