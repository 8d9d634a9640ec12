"""
Stores agent progress events.
What it records:
- Task start / ok / fail / cancel
- Planner step start / ok / fail
- Navigator act events

And, the main purpose:
Observability and debugging of agent behavior.
"""


from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from replyzy.agent.events import AgentEvent, EventManager
from replyzy.db.models import TraceEvent
from replyzy.db.repo import add_trace


async def trace(db: AsyncSession, event: AgentEvent) -> TraceEvent:
    tr = TraceEvent(
        task_id=event.data.task_id,
        step=event.data.step,
        actor=event.actor.value,
        state=event.state.value,
        details=event.data.details,
        timestamp=event.timestamp,
    )
    return await add_trace(db, tr)


class TraceRecorder:
    """Event subscriber that writes every event to trace_events."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    def attach(self, events: EventManager) -> None:
        events.subscribe_all(self)

    async def __call__(self, event: AgentEvent) -> None:
        async with self.session_factory() as db:
            await trace(db, event)
