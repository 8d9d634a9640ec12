"""
FastAPI routes for interacting with the planner.
What it provides:
- Run one planning step over a posted history
- Run the planning loop for a task
- Fetch the recorded event trace of a task

And, the main purpose:
Expose planner functionality over HTTP.
"""


from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from replyzy.agent.context import AgentContext, AgentOptions
from replyzy.agent.messages import MessageManager
from replyzy.agent.planner import PlannerAgent, PlannerConfig
from replyzy.agent.runner import run_planning_loop
from replyzy.agent.tracer import TraceRecorder
from replyzy.api.types import PlanStepRequest, RunTaskRequest, TraceEventView
from replyzy.core.config import settings
from replyzy.db.repo import get_trace
from replyzy.db.session import SessionLocal
from replyzy.llm.prompts import PlannerPrompt
from replyzy.llm.router import BaseChatModel, create_chat_model


def get_chat_model() -> BaseChatModel:
    return create_chat_model(settings)


def get_planner_config() -> PlannerConfig:
    return PlannerConfig.from_settings(settings)


def get_session_factory() -> Callable[[], AsyncSession]:
    return SessionLocal


router = APIRouter()


@router.post("/plan/step")
async def api_plan_step(
    req: PlanStepRequest,
    chat_model: BaseChatModel = Depends(get_chat_model),
    planner_config: PlannerConfig = Depends(get_planner_config),
    session_factory=Depends(get_session_factory),
):
    options = AgentOptions.from_settings(settings).model_copy(
        update={"use_vision": req.use_vision, "use_vision_for_planner": req.use_vision_for_planner}
    )
    ctx = AgentContext(task_id=req.task_id, options=options, message_manager=MessageManager(req.messages))
    ctx.n_steps = req.n_steps
    TraceRecorder(session_factory).attach(ctx.event_manager)

    planner = PlannerAgent(chat_model, ctx, planner_config=planner_config)
    outcome = await planner.execute()
    body = {"task_id": ctx.task_id}
    if outcome.result is not None:
        body["result"] = outcome.result.model_dump()
    else:
        body["error"] = outcome.error
    return body


@router.post("/tasks/run")
async def api_run_task(
    req: RunTaskRequest,
    chat_model: BaseChatModel = Depends(get_chat_model),
    planner_config: PlannerConfig = Depends(get_planner_config),
    session_factory=Depends(get_session_factory),
):
    options = AgentOptions.from_settings(settings)
    if req.max_steps is not None:
        options = options.model_copy(update={"max_steps": req.max_steps})
    ctx = AgentContext(options=options)
    prompt = PlannerPrompt()
    ctx.message_manager.init_task_messages(prompt.get_system_message(), req.task)
    TraceRecorder(session_factory).attach(ctx.event_manager)

    planner = PlannerAgent(chat_model, ctx, prompt=prompt, planner_config=planner_config)
    result = await run_planning_loop(planner)
    return result.model_dump()


@router.get("/tasks/{task_id}/events")
async def api_events(task_id: str, session_factory=Depends(get_session_factory)):
    async with session_factory() as db:
        rows = await get_trace(db, task_id)
    return [
        TraceEventView(
            id=r.id, step=r.step, actor=r.actor, state=r.state, details=r.details, timestamp=r.timestamp
        ).model_dump()
        for r in rows
    ]
