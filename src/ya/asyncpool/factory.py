"""Resource factories."""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

__all__ = 'ResourceFactory factory resolve'.split()


class ResourceFactory(Protocol):
    """Anything that can create resources.

    Only ``create`` is required. ``dispose`` and ``access`` are looked up
    with ``getattr`` by the pool and may be left out.
    """

    def create(self) -> Union[Any, Awaitable[Any]]:
        """Create a new resource."""


@dataclass(frozen=True)
class CallableFactory:
    """A factory assembled from plain functions."""
    create: Callable[[], Any]
    dispose: Optional[Callable[[Any], Any]] = None
    access: Optional[Callable[[Any], Any]] = None


def factory(create: Callable[[], Any],
            dispose: Optional[Callable[[Any], Any]] = None,
            access: Optional[Callable[[Any], Any]] = None) -> CallableFactory:
    """Create a resource factory from the given functions.

    Every function may either be a regular function or a coroutine function.
    """
    if not callable(create):
        raise TypeError(f'create must be callable, not {create!r}')
    return CallableFactory(create, dispose, access)


async def resolve(value: Any) -> Any:
    """Await the given value if it is awaitable, otherwise return it."""
    if inspect.isawaitable(value):
        return await value
    return value


def identity(resource: Any) -> Any:
    """Return the resource itself."""
    return resource


def noop(*args: Any, **kwds: Any) -> None:
    """A function that does nothing at all."""


# vim:et sw=4 ts=4
