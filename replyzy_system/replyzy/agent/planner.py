"""
Runs ONE planning step.
What it does:
- Emits step.start, then builds the planner message sequence
  (own system prompt + history without its first entry)
- Drops images from the last message when vision is on globally but off for the planner
- Step 0 with server-first planning: asks the remote planner, falls back to the LLM once
- Cleans untrusted markers out of every text field
- Emits step.ok with the final answer (done) or the next steps
- Classifies failures: auth / bad request / cancelled / forbidden propagate typed,
  anything else becomes step.fail + an error outcome

And, the main purpose:
Produce one validated, sanitized PlannerOutput per step, or a classified failure.
"""


import json
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, model_validator

from replyzy.agent.context import AgentContext
from replyzy.agent.errors import AbortError, ServerPlanError, classify_error, raise_for_kind
from replyzy.agent.events import Actors, ExecutionState
from replyzy.agent.messages import BaseMessage, strip_images
from replyzy.agent.sanitizer import filter_external_content
from replyzy.core.config import Settings
from replyzy.core.logging import get_logger
from replyzy.llm.prompts import PlannerPrompt
from replyzy.llm.router import BaseChatModel
from replyzy.llm.schemas import TEXT_FIELDS, PlannerOutput, parse_planner_output

log = get_logger("agent.planner")

SERVER_PLAN_ROUTE = "/planner/ReplyMessage/Facebook"


class PlannerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    use_server_for_first_plan: bool = False
    server_plan_endpoint: Optional[str] = None

    @classmethod
    def from_settings(cls, s: Settings) -> "PlannerConfig":
        return cls(
            use_server_for_first_plan=s.USE_SERVER_FOR_FIRST_PLAN,
            server_plan_endpoint=s.SERVER_PLAN_ENDPOINT or None,
        )


class AgentStepOutcome(BaseModel):
    id: str
    result: Optional[PlannerOutput] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one(self):
        if (self.result is None) == (self.error is None):
            raise ValueError("exactly one of result / error must be set")
        return self


def server_plan_url(endpoint: str) -> str:
    base = endpoint[:-1] if endpoint.endswith("/") else endpoint
    return f"{base}{SERVER_PLAN_ROUTE}"


def sanitize_plan(plan: PlannerOutput) -> PlannerOutput:
    return plan.model_copy(update={name: filter_external_content(getattr(plan, name)) for name in TEXT_FIELDS})


class PlannerAgent:
    id = "planner"

    def __init__(
        self,
        chat_model: BaseChatModel,
        context: AgentContext,
        prompt: Optional[PlannerPrompt] = None,
        planner_config: Optional[PlannerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.chat_model = chat_model
        self.context = context
        self.prompt = prompt or PlannerPrompt()
        self.planner_config = planner_config or PlannerConfig()
        self._transport = transport

    def _use_server_plan(self) -> bool:
        cfg = self.planner_config
        return self.context.n_steps == 0 and cfg.use_server_for_first_plan and bool(cfg.server_plan_endpoint)

    def build_messages(self) -> list[BaseMessage]:
        messages = self.context.message_manager.get_messages()
        planner_messages: list[BaseMessage] = [self.prompt.get_system_message(), *messages[1:]]

        opts = self.context.options
        if opts.use_vision and not opts.use_vision_for_planner:
            planner_messages[-1] = strip_images(planner_messages[-1])
        return planner_messages

    async def invoke(self, messages: list[BaseMessage]) -> Optional[PlannerOutput]:
        signal = self.context.controller
        return await signal.guard(self.chat_model.invoke(messages, signal=signal))

    async def execute(self) -> AgentStepOutcome:
        await self.context.emit_event(Actors.PLANNER, ExecutionState.STEP_START, "Planning...")
        try:
            planner_messages = self.build_messages()

            model_output: Optional[PlannerOutput]
            if self._use_server_plan():
                log.info("Using server-based planning for first call")
                try:
                    model_output = await self.execute_with_server_plan()
                except Exception as e:
                    if self.context.controller.cancelled or isinstance(e, AbortError):
                        raise
                    log.error(f"Server planning failed: {e}")
                    log.info("Falling back to LLM-based planning")
                    model_output = await self.invoke(planner_messages)
            else:
                model_output = await self.invoke(planner_messages)

            if model_output is None:
                raise ValueError("Failed to validate planner output")

            plan = sanitize_plan(model_output)
        except Exception as e:
            kind = classify_error(e)
            raise_for_kind(kind, e)

            message = str(e) or type(e).__name__
            log.error(f"Planning failed: {message}")
            await self.context.emit_event(Actors.PLANNER, ExecutionState.STEP_FAIL, f"Planning failed: {message}")
            return AgentStepOutcome(id=self.id, error=message)

        details = plan.final_answer if plan.done else plan.next_steps
        await self.context.emit_event(Actors.PLANNER, ExecutionState.STEP_OK, details)
        log.info(f"Planner output {json.dumps(plan.model_dump(), ensure_ascii=False)}")
        return AgentStepOutcome(id=self.id, result=plan)

    async def execute_with_server_plan(self) -> PlannerOutput:
        """Fetch the plan from the remote planner instead of the LLM. No retries."""
        endpoint = self.planner_config.server_plan_endpoint
        if not endpoint:
            raise ServerPlanError("Server plan endpoint not configured")

        url = server_plan_url(endpoint)
        log.info(f"Fetching plan from server: {url}")

        async with httpx.AsyncClient(transport=self._transport) as client:
            r = await self.context.controller.guard(client.get(url))

        if not r.is_success:
            raise ServerPlanError(f"Server returned {r.status_code}: {r.reason_phrase}", status_code=r.status_code)

        plan = parse_planner_output(r.json())
        log.info(f"Server plan received {json.dumps(plan.model_dump(), ensure_ascii=False)}")
        return plan
