"""Public API for ya.asyncpool."""
from __future__ import annotations

from .error import ResizeInProgress  # noqa: F401
from .factory import ResourceFactory, factory  # noqa: F401
from .pool import ResourcePool, create_pool  # noqa: F401
from .queue import HandoffQueue  # noqa: F401

__version__ = '0.1.0'

# vim:et sw=4 ts=4
