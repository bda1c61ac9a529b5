"""Application state container.

AppState is created once at startup (inside the Starlette lifespan) and
handed to every request handler. It owns the process-wide cache; everything
else a handler builds is request-scoped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docsmediator.config import Settings
    from docsmediator.protocols import CacheProtocol, CompletionProtocol, ResolverProtocol


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every handler."""

    settings: Settings
    cache: CacheProtocol
    resolver: ResolverProtocol
    completion: CompletionProtocol
