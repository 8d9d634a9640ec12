import asyncio
import os
import tempfile

# must run before replyzy.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(), "replyzy_test.db"))
os.environ.setdefault("LLM_PROVIDER", "mock")

import pytest

from replyzy.agent.context import AgentContext, AgentOptions
from replyzy.agent.events import AgentEvent, ExecutionState
from replyzy.agent.messages import HumanMessage, MessageManager, SystemMessage
from replyzy.llm.schemas import PlannerOutput


def make_plan(**overrides) -> PlannerOutput:
    data = dict(
        observation="o",
        challenges="c",
        done=False,
        next_steps="open the inbox",
        final_answer="",
        reasoning="r",
        web_task=True,
    )
    data.update(overrides)
    return PlannerOutput(**data)


class FakeChatModel:
    """Replays scripted replies: PlannerOutput, None, or an exception to raise."""

    model_name = "fake"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def invoke(self, messages, *, signal=None):
        self.calls.append(list(messages))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class HangingChatModel:
    model_name = "hanging"

    def __init__(self):
        self.started = asyncio.Event()
        self.calls = 0

    async def invoke(self, messages, *, signal=None):
        self.calls += 1
        self.started.set()
        await asyncio.Event().wait()


class EventLog:
    def __init__(self):
        self.events: list[AgentEvent] = []

    def __call__(self, event: AgentEvent) -> None:
        self.events.append(event)

    def states(self) -> list[ExecutionState]:
        return [e.state for e in self.events]

    def of(self, state: ExecutionState) -> list[AgentEvent]:
        return [e for e in self.events if e.state is state]


@pytest.fixture
def history():
    return MessageManager([
        SystemMessage(content="navigator system prompt"),
        HumanMessage(content="<nano_user_request>\nreply to Alice\n</nano_user_request>"),
    ])


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def make_context(history, events):
    def _make(**options):
        ctx = AgentContext(options=AgentOptions(**options), message_manager=history)
        ctx.event_manager.subscribe_all(events)
        return ctx
    return _make
