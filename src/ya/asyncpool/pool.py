"""Implementation of the ResourcePool class."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, Set, TypeVar, Union

from .error import ResizeInProgress
from .factory import ResourceFactory, identity, noop, resolve
from .queue import HandoffQueue

__all__ = 'ResourcePool create_pool'.split()

R = TypeVar('R')  # pragma: no mutate
T = TypeVar('T')  # pragma: no mutate

Task = Callable[[Any], Union[T, Awaitable[T]]]

logger = logging.getLogger(__name__)


class ResourcePool(Generic[R]):
    """A dynamically sized pool of resources lent to one caller at a time.

    Resources are handed out in the order they were requested. The number of
    live resources follows the target size set with ``resize``: growth
    happens eagerly in ``resize`` or lazily in ``use``, shrinking happens by
    retiring resources as they come back from their borrowers.
    """
    __slots__ = (
        '__create',
        '__dispose',
        '__access',
        '__idle',
        '__size',
        '__target',
        '__resizing',
        '__disposals',
    )

    def __init__(self: ResourcePool, factory: ResourceFactory) -> None:
        """Initialize the object."""
        create = getattr(factory, 'create', None)
        if not callable(create):
            raise TypeError(f'{factory!r} has no create method')
        self.__create = create
        self.__dispose = getattr(factory, 'dispose', None) or noop
        self.__access = getattr(factory, 'access', None) or identity
        self.__idle: HandoffQueue[R] = HandoffQueue()
        self.__size = 0
        self.__target = 0
        self.__resizing = False
        self.__disposals: Set[asyncio.Task] = set()

    async def use(self: ResourcePool,
                  task: Task,
                  await_disposal: bool = False,
                  *,
                  grow: bool = False) -> T:
        """Borrow a resource, run ``task`` with it and give it back.

        ``task`` receives whatever the factory's ``access`` makes of the
        resource. Its result is returned and its exceptions propagate, but
        only after the resource has been returned to the pool or retired.
        With ``await_disposal``, a retirement triggered by this call is
        completed before returning. With ``grow``, a new resource is created
        while below the target size even if idle ones are available.
        """
        return await self.__borrow(task, retire=False,
                                   await_disposal=await_disposal, grow=grow)

    async def resize(self: ResourcePool, size: int) -> None:
        """Set the target size and wait until the pool has converged.

        Raises ``ResizeInProgress`` if another resize has not finished yet.
        Shrinking waits for lent out resources to come back.
        """
        if size < 0:
            raise ValueError(f'size must not be negative, got {size}')
        if self.__resizing:
            raise ResizeInProgress(
                f'cannot resize to {size} while already resizing '
                f'to {self.__target}')

        self.__resizing = True
        try:
            self.__target = size
            logger.debug('Resize started: <size=%d, target=%d>',
                         self.__size, self.__target)
            while self.__size < self.__target:
                await self.__grow()
            while self.__size > self.__target:
                await self.__borrow(None, retire=True, await_disposal=True)
            logger.debug('Resize finished: <size=%d, idle=%d>',
                         self.__size, len(self.__idle))
        finally:
            self.__resizing = False

    async def join(self: ResourcePool) -> None:
        """Wait for all disposals running in the background."""
        while self.__disposals:
            await asyncio.wait(set(self.__disposals))

    async def aclose(self: ResourcePool) -> None:
        """Retire all resources."""
        await self.resize(0)
        await self.join()

    async def __aenter__(self: ResourcePool) -> ResourcePool:
        return self

    async def __aexit__(self: ResourcePool, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def size(self: ResourcePool) -> int:
        """Get the number of live resources, including lent out ones."""
        return self.__size

    @property
    def target_size(self: ResourcePool) -> int:
        """Get the size the pool converges to."""
        return self.__target

    @property
    def idle(self: ResourcePool) -> int:
        """Get the number of resources waiting to be borrowed."""
        return len(self.__idle)

    @property
    def resizing(self: ResourcePool) -> bool:
        """Tell whether a resize is in progress."""
        return self.__resizing

    def __len__(self: ResourcePool) -> int:
        """Get the number of currently pooled resources."""
        return len(self.__idle)

    async def __borrow(self: ResourcePool,
                       task: Optional[Task],
                       *,
                       retire: bool,
                       await_disposal: bool,
                       grow: bool = False) -> Any:
        """Take a resource out of rotation for the duration of some work.

        With ``retire`` there is no work: the resource only passes through
        the size check on its way back.
        """
        if self.__size < self.__target and (grow or len(self.__idle) == 0):
            await self.__grow()

        resource = await self.__idle.dequeue()
        try:
            if retire:
                return None
            view = await resolve(self.__access(resource))
            return await resolve(task(view))
        finally:
            if self.__size > self.__target and (
                    retire or self.__idle.waiters == 0):
                self.__size -= 1
                logger.debug('Resource retired: <size=%d, target=%d>',
                             self.__size, self.__target)
                if await_disposal:
                    await self.__retire(resource)
                else:
                    self.__dispose_later(resource)
            else:
                # over target with callers waiting, the next borrower retires it
                self.__idle.enqueue(resource)

    async def __grow(self: ResourcePool) -> None:
        """Create one resource and make it available."""
        self.__size += 1
        try:
            resource = await resolve(self.__create())
        except BaseException:
            self.__size -= 1
            logger.warning('Resource creation failed: <size=%d, target=%d>',
                           self.__size, self.__target)
            raise
        logger.debug('Resource created: <size=%d, target=%d>',
                     self.__size, self.__target)
        self.__idle.enqueue(resource)

    async def __retire(self: ResourcePool, resource: R) -> None:
        await resolve(self.__dispose(resource))

    def __dispose_later(self: ResourcePool, resource: R) -> None:
        """Dispose of the resource without waiting for it."""
        disposal = asyncio.ensure_future(self.__retire(resource))
        self.__disposals.add(disposal)
        disposal.add_done_callback(self.__disposed)

    def __disposed(self: ResourcePool, disposal: asyncio.Future) -> None:
        self.__disposals.discard(disposal)
        if disposal.cancelled():
            logger.warning('Resource disposal cancelled: <size=%d, target=%d>',
                           self.__size, self.__target)
            return
        exc = disposal.exception()
        if exc is not None:
            logger.debug('Resource disposal failed: <size=%d, target=%d>',
                         self.__size, self.__target)
            disposal.get_loop().call_exception_handler({
                'message': 'Unobserved resource disposal failure',
                'exception': exc,
                'future': disposal,
            })


async def create_pool(factory: ResourceFactory, size: int = 8) -> ResourcePool:
    """Create a resource pool holding ``size`` resources."""
    pool = ResourcePool(factory)
    await pool.resize(size)
    return pool


# vim:et sw=4 ts=4
