# replyzy/db/repo.py

import json
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from replyzy.db.models import TraceEvent, LLMProvider, AgentModel


def _serialize_sqlite_value(value: Any) -> Any:
    """
    SQLite cannot bind dict/list directly into TEXT parameters.
    Convert dict/list to JSON string so commit never fails.
    """
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


async def add_trace(db: AsyncSession, tr: TraceEvent) -> TraceEvent:
    tr.details = _serialize_sqlite_value(tr.details)
    db.add(tr)
    await db.commit()
    await db.refresh(tr)
    return tr


async def get_trace(db: AsyncSession, task_id: str) -> list[TraceEvent]:
    res = await db.execute(
        select(TraceEvent)
        .where(TraceEvent.task_id == task_id)
        .order_by(TraceEvent.id)
    )
    return list(res.scalars().all())


async def list_providers(db: AsyncSession) -> list[LLMProvider]:
    res = await db.execute(select(LLMProvider).order_by(LLMProvider.created_at))
    return list(res.scalars().all())


async def set_provider(db: AsyncSession, provider: LLMProvider) -> LLMProvider:
    provider.model_names = _serialize_sqlite_value(provider.model_names)
    merged = await db.merge(provider)
    await db.commit()
    return merged


async def set_agent_model(db: AsyncSession, model: AgentModel) -> AgentModel:
    model.parameters = _serialize_sqlite_value(model.parameters)
    model.updated_at = datetime.utcnow()
    merged = await db.merge(model)
    await db.commit()
    return merged


async def get_agent_model(db: AsyncSession, agent_name: str) -> AgentModel | None:
    res = await db.execute(select(AgentModel).where(AgentModel.agent_name == agent_name))
    return res.scalar_one_or_none()
