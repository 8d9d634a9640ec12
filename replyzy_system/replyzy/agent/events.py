"""
Progress events emitted by agents.
What it defines:
- Actors and ExecutionState vocabularies
- AgentEvent records
- EventManager: subscribe / unsubscribe / emit

And, the main purpose:
Let observers (UI, tracer, API) follow task and step progress without
being able to break the agent.
"""


import inspect
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from pydantic import BaseModel, Field

from replyzy.core.logging import get_logger

log = get_logger("agent.events")


class Actors(str, Enum):
    SYSTEM = "system"
    USER = "user"
    PLANNER = "planner"
    NAVIGATOR = "navigator"


class ExecutionState(str, Enum):
    TASK_START = "task.start"
    TASK_OK = "task.ok"
    TASK_FAIL = "task.fail"
    TASK_PAUSE = "task.pause"
    TASK_RESUME = "task.resume"
    TASK_CANCEL = "task.cancel"

    STEP_START = "step.start"
    STEP_OK = "step.ok"
    STEP_FAIL = "step.fail"
    STEP_CANCEL = "step.cancel"

    ACT_START = "act.start"
    ACT_OK = "act.ok"
    ACT_FAIL = "act.fail"


class EventData(BaseModel):
    task_id: str
    step: int
    max_steps: int
    details: str = ""


class AgentEvent(BaseModel):
    actor: Actors
    state: ExecutionState
    data: EventData
    timestamp: float = Field(default_factory=time.time)


EventCallback = Callable[[AgentEvent], Union[None, Awaitable[None]]]


class EventManager:
    def __init__(self) -> None:
        self._subscribers: dict[Optional[ExecutionState], list[EventCallback]] = {}

    def subscribe(self, state: ExecutionState, callback: EventCallback) -> None:
        subs = self._subscribers.setdefault(state, [])
        if callback not in subs:
            subs.append(callback)

    def subscribe_all(self, callback: EventCallback) -> None:
        # None key = every state
        subs = self._subscribers.setdefault(None, [])
        if callback not in subs:
            subs.append(callback)

    def unsubscribe(self, state: Optional[ExecutionState], callback: EventCallback) -> None:
        subs = self._subscribers.get(state, [])
        if callback in subs:
            subs.remove(callback)

    def clear(self) -> None:
        self._subscribers.clear()

    async def emit(self, event: AgentEvent) -> None:
        callbacks = [*self._subscribers.get(event.state, []), *self._subscribers.get(None, [])]
        for cb in callbacks:
            try:
                res = cb(event)
                if inspect.isawaitable(res):
                    await res
            except Exception as e:
                log.error(f"Event subscriber failed on {event.state.value}: {e}")
