"""
Conversation history for a task.
What it defines:
- System / human / AI message records (text or text+image segments)
- MessageManager: ordered, append-only history owned by the driver
- strip_images(): text-only copy of a segmented message

And, the main purpose:
Give every agent the same ordered view of the task so far.
"""


from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from replyzy.agent.sanitizer import wrap_untrusted_content, wrap_user_request


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: str  # data: URL or http(s) URL


ContentPart = Annotated[Union[TextPart, ImagePart], Field(discriminator="type")]


class BaseMessage(BaseModel):
    content: Union[str, list[ContentPart]]

    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "".join(p.text for p in self.content if isinstance(p, TextPart))

    def to_openai(self) -> dict:
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        parts = []
        for p in self.content:
            if isinstance(p, TextPart):
                parts.append({"type": "text", "text": p.text})
            else:
                parts.append({"type": "image_url", "image_url": {"url": p.image_url}})
        return {"role": self.role, "content": parts}


class SystemMessage(BaseMessage):
    role: Literal["system"] = "system"


class HumanMessage(BaseMessage):
    role: Literal["user"] = "user"


class AIMessage(BaseMessage):
    role: Literal["assistant"] = "assistant"


Message = Annotated[Union[SystemMessage, HumanMessage, AIMessage], Field(discriminator="role")]


def strip_images(message: BaseMessage) -> BaseMessage:
    """Keep only text segments, concatenated in order. String content is returned as is."""
    if isinstance(message.content, str):
        return message
    return HumanMessage(content=message.text())


class MessageManager:
    def __init__(self, messages: Optional[list[BaseMessage]] = None):
        self._messages: list[BaseMessage] = list(messages or [])

    def init_task_messages(self, system_message: SystemMessage, task: str) -> None:
        self._messages.append(system_message)
        self._messages.append(HumanMessage(content=wrap_user_request(task)))

    def add_message(self, message: BaseMessage, position: Optional[int] = None) -> None:
        if position is None:
            self._messages.append(message)
        else:
            self._messages.insert(position, message)

    def add_state_message(self, state_text: str, images: Optional[list[str]] = None) -> None:
        wrapped = wrap_untrusted_content(state_text)
        if not images:
            self.add_message(HumanMessage(content=wrapped))
            return
        parts: list = [TextPart(text=wrapped)]
        parts.extend(ImagePart(image_url=url) for url in images)
        self.add_message(HumanMessage(content=parts))

    def add_plan(self, plan: str, position: Optional[int] = None) -> None:
        self.add_message(AIMessage(content=f"<plan>{plan}</plan>"), position)

    def get_messages(self) -> list[BaseMessage]:
        return list(self._messages)

    def length(self) -> int:
        return len(self._messages)
