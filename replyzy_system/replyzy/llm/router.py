"""
LLM call wrapper and it does:
- Sends the planner message sequence to an OpenAI-compatible provider
- Retries transient statuses (429 / 5xx) and network errors with backoff
- Surfaces every other 4xx as ChatModelHTTPError (status code kept for classification)
- Extracts JSON from the reply, repairs it once, validates it as PlannerOutput

Main purpose:
Central interface for all model calls.
"""


import asyncio
from typing import Optional, Protocol, Sequence

import httpx

from replyzy.agent.errors import ResponseParseError
from replyzy.agent.messages import BaseMessage
from replyzy.core.config import Settings
from replyzy.core.logging import get_logger
from replyzy.llm.json_parse import extract_json_object
from replyzy.llm.schemas import OutputValidationError, PlannerOutput, parse_planner_output

log = get_logger("llm.router")

TRANSIENT_STATUSES = (429, 500, 502, 503, 504)


class LLMError(RuntimeError):
    pass


class ChatModelHTTPError(LLMError):
    def __init__(self, status_code: int, reason: str, body: str):
        super().__init__(f"{status_code} {reason}: {_safe_snippet(body)}")
        self.status_code = status_code


def _safe_snippet(text: str, n: int = 400) -> str:
    return (text or "")[:n].replace("\n", "\\n").replace("\r", "\\r")


class BaseChatModel(Protocol):
    model_name: str

    async def invoke(self, messages: Sequence[BaseMessage], *, signal=None) -> Optional[PlannerOutput]:
        ...


class ReplyzyChatModel:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        model_name: str,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        reasoning_effort: Optional[str] = None,
        timeout: float = 40.0,
        max_attempts: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.top_p = top_p
        self.reasoning_effort = reasoning_effort
        self.timeout = httpx.Timeout(timeout, connect=10.0)
        self.max_attempts = max_attempts
        self._transport = transport

    def _payload(self, messages: Sequence[dict]) -> dict:
        payload: dict = {"model": self.model_name, "messages": list(messages)}
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.top_p is not None:
            payload["top_p"] = self.top_p
        if self.reasoning_effort:
            payload["reasoning_effort"] = self.reasoning_effort
        return payload

    async def _sleep(self, seconds: float, signal) -> None:
        if signal is not None:
            await signal.sleep(seconds)
        else:
            await asyncio.sleep(seconds)

    async def chat(self, messages: Sequence[dict], *, signal=None) -> str:
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = self._payload(messages)

        last_err: Exception | None = None
        for attempt in range(self.max_attempts):
            backoff = 0.6 * (2**attempt)
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    r = await client.post(url, headers=headers, json=payload)
            except httpx.TransportError as e:
                last_err = e
                log.warning(f"Chat call failed: {e}. retrying in {backoff:.1f}s (attempt {attempt+1}/{self.max_attempts})")
                await self._sleep(backoff, signal)
                continue

            # Retry transient errors
            if r.status_code in TRANSIENT_STATUSES:
                last_err = ChatModelHTTPError(r.status_code, r.reason_phrase, r.text)
                log.warning(f"{last_err}. retrying in {backoff:.1f}s (attempt {attempt+1}/{self.max_attempts})")
                await self._sleep(backoff, signal)
                continue

            if r.status_code >= 400:
                raise ChatModelHTTPError(r.status_code, r.reason_phrase, r.text)

            data = r.json()
            try:
                return data["choices"][0]["message"]["content"] or ""
            except (KeyError, IndexError, TypeError) as e:
                raise LLMError(f"Unexpected chat response: {_safe_snippet(str(data))}") from e

        raise LLMError(f"Chat call failed after retries: {last_err}")

    async def invoke(self, messages: Sequence[BaseMessage], *, signal=None) -> Optional[PlannerOutput]:
        """
        Returns None when the model answers with empty content.
        Raises ResponseParseError when the reply cannot be turned into PlannerOutput.
        """
        text = await self.chat([m.to_openai() for m in messages], signal=signal)
        if not text.strip():
            return None
        try:
            return parse_planner_output(extract_json_object(text))
        except (ValueError, OutputValidationError) as e:
            log.warning(f"Planner output parse failed (attempt1): {e}. Snippet={_safe_snippet(text)}. Trying repair...")

        # Attempt 2: strict formatter
        repair = [
            {"role": "system", "content": "You are a strict JSON formatter. Return ONLY a valid JSON object."},
            {"role": "user", "content": f"Fix and output ONLY a JSON object for this content:\n{text}\nReturn ONLY JSON."},
        ]
        text2 = await self.chat(repair, signal=signal)
        try:
            return parse_planner_output(extract_json_object(text2))
        except (ValueError, OutputValidationError) as e2:
            raise ResponseParseError(f"Could not parse planner response: {e2}") from e2


class MockChatModel:
    """Keyless development model: always answers the last message directly."""

    model_name = "mock"

    async def invoke(self, messages: Sequence[BaseMessage], *, signal=None) -> Optional[PlannerOutput]:
        last = messages[-1].text() if messages else ""
        return PlannerOutput(
            observation="Mock planner received the task.",
            challenges="",
            done=True,
            next_steps="",
            final_answer=last[:200],
            reasoning="No LLM key configured",
            web_task=False,
        )


def create_chat_model(s: Settings) -> BaseChatModel:
    provider = (s.LLM_PROVIDER or "").lower().strip()
    if provider == "mock":
        return MockChatModel()
    if provider != "replyzy":
        raise LLMError(f"Unsupported LLM_PROVIDER={s.LLM_PROVIDER}. Use replyzy or mock.")
    return ReplyzyChatModel(
        base_url=s.LLM_BASE_URL,
        api_key=s.LLM_API_KEY,
        model_name=s.PLANNER_MODEL,
        temperature=s.LLM_TEMPERATURE,
        top_p=s.LLM_TOP_P,
        reasoning_effort=s.LLM_REASONING_EFFORT,
        timeout=s.LLM_TIMEOUT_SECONDS,
    )
