"""
Execution context shared by the planning loop.
What it holds:
- Step counter and failure counter
- The cancellation token every outbound call is bound to
- Vision flags and loop limits
- The message history and the event manager

And, the main purpose:
One object the driver owns and the agents only read.
"""


import asyncio
from typing import Awaitable, Optional, TypeVar

from pydantic import BaseModel

from replyzy.agent.errors import AbortError
from replyzy.agent.events import Actors, AgentEvent, EventData, EventManager, ExecutionState
from replyzy.agent.messages import MessageManager
from replyzy.core.config import Settings
from replyzy.core.ids import new_id

T = TypeVar("T")


class CancelToken:
    """Shared cancellation signal. Once cancelled it stays cancelled."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "Request was aborted by user") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AbortError(self.reason)

    async def sleep(self, seconds: float) -> None:
        await self.guard(asyncio.sleep(seconds))

    async def guard(self, aw: Awaitable[T]) -> T:
        """
        Await `aw` unless the signal fires first.
        On cancel the in-flight work is cancelled and AbortError is raised.
        """
        if self.cancelled:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise AbortError(self.reason)
        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise AbortError(self.reason)


class AgentOptions(BaseModel):
    use_vision: bool = False
    use_vision_for_planner: bool = False
    max_steps: int = 100
    max_failures: int = 3

    @classmethod
    def from_settings(cls, s: Settings) -> "AgentOptions":
        return cls(
            use_vision=s.USE_VISION,
            use_vision_for_planner=s.USE_VISION_FOR_PLANNER,
            max_steps=s.MAX_STEPS,
            max_failures=s.MAX_FAILURES,
        )


class AgentContext:
    def __init__(
        self,
        *,
        task_id: Optional[str] = None,
        options: Optional[AgentOptions] = None,
        message_manager: Optional[MessageManager] = None,
        event_manager: Optional[EventManager] = None,
    ):
        self.task_id = task_id or new_id("task")
        self.options = options or AgentOptions()
        self.message_manager = message_manager or MessageManager()
        self.event_manager = event_manager or EventManager()
        self.controller = CancelToken()
        self.n_steps = 0
        self.consecutive_failures = 0
        self.stopped = False

    async def emit_event(self, actor: Actors, state: ExecutionState, details: str) -> AgentEvent:
        event = AgentEvent(
            actor=actor,
            state=state,
            data=EventData(
                task_id=self.task_id,
                step=self.n_steps,
                max_steps=self.options.max_steps,
                details=details,
            ),
        )
        await self.event_manager.emit(event)
        return event

    def stop(self, reason: str = "Request was aborted by user") -> None:
        self.stopped = True
        self.controller.cancel(reason)
