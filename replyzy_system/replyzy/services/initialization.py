"""
First-run default configuration.
What it does:
- Creates the default Replyzy provider when no provider exists yet
- Assigns gpt-5-mini (medium reasoning) to the planner and navigator agents
- Reports ok / skipped / degraded instead of swallowing storage failures

And, the main purpose:
Let a fresh install plan without manual setup, without ever blocking startup.
"""


from typing import Literal

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from replyzy.core.config import Settings, settings as default_settings
from replyzy.core.logging import get_logger
from replyzy.db.models import AgentModel, LLMProvider
from replyzy.db.repo import list_providers, set_agent_model, set_provider

log = get_logger("services.initialization")

DEFAULT_PROVIDER_ID = "replyzy"
DEFAULT_MODEL_NAMES = ["gpt-5", "gpt-5-mini"]
DEFAULT_AGENT_MODEL = "gpt-5-mini"
AGENT_NAMES = ("planner", "navigator")


class InitResult(BaseModel):
    status: Literal["ok", "skipped", "degraded"]
    reason: str = ""


def _model_parameters(s: Settings) -> dict:
    return {"temperature": s.LLM_TEMPERATURE, "topP": s.LLM_TOP_P}


class InitializationService:
    def __init__(self, s: Settings = default_settings):
        self.settings = s

    async def ensure_default_configuration(self, db: AsyncSession) -> InitResult:
        """Idempotent: only acts when no provider is configured."""
        try:
            if await list_providers(db):
                log.info("Providers already configured, skipping default setup")
                return InitResult(status="skipped", reason="providers already configured")

            log.info(f"Setting up default Replyzy provider with backend URL: {self.settings.LLM_BASE_URL}")
            await set_provider(
                db,
                LLMProvider(
                    id=DEFAULT_PROVIDER_ID,
                    name="Replyzy",
                    type="custom_openai",
                    api_key="",  # added later by the user
                    base_url=self.settings.LLM_BASE_URL,
                    model_names=list(DEFAULT_MODEL_NAMES),
                ),
            )

            for agent_name in AGENT_NAMES:
                await set_agent_model(
                    db,
                    AgentModel(
                        agent_name=agent_name,
                        provider=DEFAULT_PROVIDER_ID,
                        model_name=DEFAULT_AGENT_MODEL,
                        parameters=_model_parameters(self.settings),
                        reasoning_effort=self.settings.LLM_REASONING_EFFORT,
                    ),
                )
                log.info(f"Configured default {agent_name} model with {DEFAULT_AGENT_MODEL}")
        except SQLAlchemyError as e:
            await db.rollback()
            return InitResult(status="degraded", reason=f"default configuration not stored: {e}")

        log.info("Default configuration setup completed successfully")
        return InitResult(status="ok")
