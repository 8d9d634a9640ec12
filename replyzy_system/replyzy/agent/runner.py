"""
Orchestrates full task execution.
What it does:
- Runs the planner once per step
- Appends every plan to the message history
- Calls the navigator hook between planning steps
- Stops on done, on too many consecutive failures, on max steps,
  on cancellation, or on a user-fixable model error

And, the main purpose:
Drive planning -> navigation -> completion flow.
"""


from typing import Awaitable, Callable, Literal, Optional

from pydantic import BaseModel

from replyzy.agent.context import AgentContext
from replyzy.agent.errors import (
    AbortError,
    ChatModelAuthError,
    ChatModelBadRequestError,
    ChatModelForbiddenError,
    RequestCancelledError,
)
from replyzy.agent.events import Actors, ExecutionState
from replyzy.agent.planner import PlannerAgent
from replyzy.core.logging import get_logger
from replyzy.llm.schemas import PlannerOutput

log = get_logger("agent.runner")

NavigateHook = Callable[[AgentContext, PlannerOutput], Awaitable[None]]


class TaskRunResult(BaseModel):
    task_id: str
    status: Literal["completed", "failed", "cancelled"]
    steps_executed: int
    final_answer: str = ""
    error: str = ""
    plans: list[PlannerOutput] = []


async def run_planning_loop(planner: PlannerAgent, *, navigate: Optional[NavigateHook] = None) -> TaskRunResult:
    ctx = planner.context
    plans: list[PlannerOutput] = []

    def _result(status, **kw) -> TaskRunResult:
        return TaskRunResult(task_id=ctx.task_id, status=status, steps_executed=len(plans), plans=plans, **kw)

    await ctx.emit_event(Actors.SYSTEM, ExecutionState.TASK_START, ctx.task_id)
    try:
        while ctx.n_steps < ctx.options.max_steps:
            ctx.controller.raise_if_cancelled()

            outcome = await planner.execute()
            if outcome.error is not None:
                ctx.consecutive_failures += 1
                log.warning(f"Planning step {ctx.n_steps} failed ({ctx.consecutive_failures}/{ctx.options.max_failures})")
                if ctx.consecutive_failures >= ctx.options.max_failures:
                    msg = f"Stopping due to {ctx.consecutive_failures} consecutive failures: {outcome.error}"
                    await ctx.emit_event(Actors.SYSTEM, ExecutionState.TASK_FAIL, msg)
                    return _result("failed", error=msg)
            else:
                ctx.consecutive_failures = 0
                plan = outcome.result
                plans.append(plan)
                ctx.message_manager.add_plan(plan.model_dump_json())
                if plan.done:
                    await ctx.emit_event(Actors.SYSTEM, ExecutionState.TASK_OK, plan.final_answer)
                    return _result("completed", final_answer=plan.final_answer)
                if navigate is not None:
                    await ctx.controller.guard(navigate(ctx, plan))

            ctx.n_steps += 1

        msg = f"Task failed: max steps ({ctx.options.max_steps}) reached"
        await ctx.emit_event(Actors.SYSTEM, ExecutionState.TASK_FAIL, msg)
        return _result("failed", error=msg)

    except (RequestCancelledError, AbortError):
        log.info(f"Task {ctx.task_id} cancelled")
        await ctx.emit_event(Actors.SYSTEM, ExecutionState.TASK_CANCEL, "Task cancelled")
        return _result("cancelled")
    except (ChatModelAuthError, ChatModelBadRequestError, ChatModelForbiddenError) as e:
        log.error(f"Task {ctx.task_id} stopped: {type(e).__name__}: {e}")
        await ctx.emit_event(Actors.SYSTEM, ExecutionState.TASK_FAIL, str(e))
        return _result("failed", error=str(e))
