from __future__ import annotations
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from gippy.config import Settings
from gippy.errors import TransportError
from gippy.models import Message
from gippy.telemetry import get_tracer

tracer = get_tracer("gippy.completions")

MODEL = "gpt-3.5-turbo"
TEMPERATURE = 0.7


def build_request(messages: Sequence[Message]) -> Dict[str, Any]:
    """Request body carrying the whole conversation so far."""
    return {
        "model": MODEL,
        "messages": [m.to_dict() for m in messages],
        "temperature": TEMPERATURE,
    }


def _choice_contents(body: Any) -> List[str]:
    if not isinstance(body, dict) or not isinstance(body.get("choices"), list):
        raise TransportError("Malformed response: missing choices")
    contents: List[str] = []
    for choice in body["choices"]:
        try:
            content = choice["message"]["content"]
        except (KeyError, TypeError):
            raise TransportError("Malformed response: choice without message content")
        if not isinstance(content, str):
            raise TransportError("Malformed response: message content is not a string")
        contents.append(content)
    return contents


class ChatCompletionsClient:
    def __init__(
        self,
        base_url: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = f"{base_url}/chat/completions"
        self.timeout = timeout
        self.transport = transport

    @staticmethod
    def from_settings(settings: Settings) -> "ChatCompletionsClient":
        return ChatCompletionsClient(base_url=settings.base_url, timeout=settings.request_timeout)

    async def complete(self, api_key: str, payload: Dict[str, Any]) -> List[str]:
        """POST ``payload`` and return the content of every returned choice, in order.

        Network errors, non-2xx statuses and unparseable bodies all surface
        as TransportError.
        """
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        with tracer.start_as_current_span("completions.create") as span:
            span.set_attribute("completions.model", payload.get("model", ""))
            span.set_attribute("completions.messages", len(payload.get("messages", [])))
            t0 = time.perf_counter()
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    resp = await client.post(self.url, json=payload, headers=headers)
                    resp.raise_for_status()
                    body = resp.json()
            except httpx.HTTPStatusError as e:
                span.set_attribute("http.status_code", e.response.status_code)
                raise TransportError(
                    f"HTTP {e.response.status_code}: {e.response.text}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.HTTPError as e:
                raise TransportError(f"Connection error: {e}") from e
            except ValueError as e:
                raise TransportError(f"Malformed response: {e}") from e
            finally:
                span.set_attribute("completions.elapsed_ms", int((time.perf_counter() - t0) * 1000))

            contents = _choice_contents(body)
            span.set_attribute("completions.choices", len(contents))
            return contents
