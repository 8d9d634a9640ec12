import json

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from replyzy.agent.events import Actors, AgentEvent, EventData, EventManager, ExecutionState
from replyzy.agent.tracer import TraceRecorder
from replyzy.core.config import Settings
from replyzy.db.repo import get_agent_model, get_trace, list_providers
from replyzy.db.session import init_db
from replyzy.services.initialization import InitializationService


@pytest_asyncio.fixture
async def sessions(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'init.db'}")
    yield engine, async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_defaults_created_once(sessions):
    engine, Session = sessions
    await init_db(engine)
    service = InitializationService(Settings(LLM_BASE_URL="http://backend:7200/"))

    async with Session() as db:
        first = await service.ensure_default_configuration(db)
    async with Session() as db:
        second = await service.ensure_default_configuration(db)
        providers = await list_providers(db)
        planner = await get_agent_model(db, "planner")
        navigator = await get_agent_model(db, "navigator")

    assert first.status == "ok"
    assert second.status == "skipped"
    assert [p.id for p in providers] == ["replyzy"]
    assert providers[0].base_url == "http://backend:7200/"
    assert providers[0].api_key == ""
    assert json.loads(providers[0].model_names) == ["gpt-5", "gpt-5-mini"]
    assert planner.model_name == "gpt-5-mini"
    assert planner.reasoning_effort == "medium"
    assert json.loads(planner.parameters) == {"temperature": 0.1, "topP": 0.1}
    assert navigator.provider == "replyzy"
    assert json.loads(navigator.parameters) == json.loads(planner.parameters)


@pytest.mark.asyncio
async def test_storage_failure_is_degraded(sessions):
    _, Session = sessions  # tables never created
    async with Session() as db:
        res = await InitializationService().ensure_default_configuration(db)
    assert res.status == "degraded"
    assert "llm_providers" in res.reason


@pytest.mark.asyncio
async def test_trace_recorder_persists_events(sessions):
    engine, Session = sessions
    await init_db(engine)
    events = EventManager()
    TraceRecorder(Session).attach(events)

    for i, state in enumerate([ExecutionState.STEP_START, ExecutionState.STEP_OK]):
        await events.emit(AgentEvent(
            actor=Actors.PLANNER,
            state=state,
            data=EventData(task_id="task_1", step=0, max_steps=10, details=f"d{i}"),
            timestamp=100.0 + i,
        ))

    async with Session() as db:
        rows = await get_trace(db, "task_1")
    assert [(r.actor, r.state, r.details) for r in rows] == [
        ("planner", "step.start", "d0"),
        ("planner", "step.ok", "d1"),
    ]


@pytest.mark.asyncio
async def test_agent_parameters_follow_settings(sessions):
    engine, Session = sessions
    await init_db(engine)
    service = InitializationService(Settings(LLM_TEMPERATURE=0.4, LLM_TOP_P=0.9, LLM_REASONING_EFFORT="low"))

    async with Session() as db:
        await service.ensure_default_configuration(db)
        for name in ("planner", "navigator"):
            row = await get_agent_model(db, name)
            assert json.loads(row.parameters) == {"temperature": 0.4, "topP": 0.9}
            assert row.reasoning_effort == "low"
