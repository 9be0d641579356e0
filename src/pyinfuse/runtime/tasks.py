import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, List, Set

from pyinfuse.runtime.exceptions import InfuseRuntimeError

logger = logging.getLogger(__name__)


class TaskScheduler:
    """Runs awaitable results of context functions, parts and listeners.

    Each awaitable becomes a task on the running event loop; ``on_result`` is
    called with its value once it completes. Errors are kept until
    :meth:`settle` is awaited.
    """

    def __init__(self) -> None:
        self._pending: Set["asyncio.Task[Any]"] = set()
        self._errors: List[BaseException] = []

    def schedule(
        self, awaitable: Awaitable[Any], on_result: Callable[[Any], None]
    ) -> "asyncio.Task[Any]":
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise InfuseRuntimeError(
                "Asynchronous expressions need a running event loop"
            ) from None

        task = loop.create_task(self._run(awaitable, on_result))
        self._pending.add(task)
        task.add_done_callback(self._done)
        return task

    async def _run(
        self, awaitable: Awaitable[Any], on_result: Callable[[Any], None]
    ) -> None:
        on_result(await awaitable)

    def _done(self, task: "asyncio.Task[Any]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug("Scheduled task failed: %r", error)
            self._errors.append(error)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def settle(self) -> None:
        """Wait for every scheduled task, including the ones they schedule.

        Re-raises the first error raised by a task since the last call.
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
            # Let done callbacks run.
            await asyncio.sleep(0)

        if self._errors:
            errors, self._errors = self._errors, []
            for extra in errors[1:]:
                logger.error("Additional scheduled task error: %r", extra)
            raise errors[0]

    def cancel(self) -> None:
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
