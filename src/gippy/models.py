from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

ROLES = ("user", "assistant")


@dataclass(frozen=True)
class Message:
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @staticmethod
    def from_dict(data: Any) -> "Message":
        if not isinstance(data, dict):
            raise ValueError("message is not an object")
        role = data.get("role")
        content = data.get("content")
        if role not in ROLES:
            raise ValueError(f"unknown role {role!r}")
        if not isinstance(content, str):
            raise ValueError("message content is not a string")
        return Message(role=role, content=content)


@dataclass(frozen=True)
class Thread:
    id: str
    messages: Tuple[Message, ...] = field(default_factory=tuple)

    def append(self, message: Message) -> "Thread":
        """Return a copy of this thread with ``message`` added at the end."""
        return Thread(id=self.id, messages=self.messages + (message,))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "messages": [m.to_dict() for m in self.messages]}

    @staticmethod
    def from_dict(data: Any) -> "Thread":
        if not isinstance(data, dict):
            raise ValueError("thread record is not an object")
        tid = data.get("id")
        messages = data.get("messages")
        if not isinstance(tid, str) or not tid:
            raise ValueError("thread id is missing")
        if not isinstance(messages, list):
            raise ValueError("thread messages is not a list")
        return Thread(id=tid, messages=tuple(Message.from_dict(m) for m in messages))


@dataclass(frozen=True)
class Config:
    api_key: str
    prompt_mode: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"apiKey": self.api_key, "promptMode": self.prompt_mode}

    @staticmethod
    def from_dict(data: Any) -> "Config":
        if not isinstance(data, dict):
            raise ValueError("config record is not an object")
        api_key = data.get("apiKey")
        prompt_mode = data.get("promptMode", False)
        if not isinstance(api_key, str):
            raise ValueError("apiKey is not a string")
        if not isinstance(prompt_mode, bool):
            raise ValueError("promptMode is not a boolean")
        return Config(api_key=api_key, prompt_mode=prompt_mode)
