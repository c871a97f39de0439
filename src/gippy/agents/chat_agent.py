from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from gippy.api.completions import ChatCompletionsClient, build_request
from gippy.errors import StoreWriteError, TransportError
from gippy.models import Message, Thread
from gippy.telemetry import get_tracer
from gippy.workspace import Workspace

logger = logging.getLogger(__name__)
tracer = get_tracer("gippy.agent")

EXIT_COMMAND = "/exit"


def redact_key(api_key: str) -> str:
    return f"****{api_key[-4:]}"


@dataclass(frozen=True)
class ExchangeResult:
    """Outcome of one request/response round trip.

    ``thread`` always holds the user turn. ``reply`` is None when the
    endpoint returned no choices or when ``error`` is set.
    """

    thread: Thread
    reply: Optional[str] = None
    error: Optional[TransportError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ChatSession:
    def __init__(
        self,
        workspace: Workspace,
        client: ChatCompletionsClient,
        api_key: str,
        debug: bool = False,
    ) -> None:
        self.workspace = workspace
        self.client = client
        self.api_key = api_key
        self.debug = debug

    async def exchange(self, thread: Thread, query: str) -> ExchangeResult:
        """Send ``query`` with the full history of ``thread``; touches no files."""
        current = thread.append(Message(role="user", content=query))
        payload = build_request(current.messages)

        if self.debug:
            print(f"DEBUG: Using API key: {redact_key(self.api_key)}")
            print("DEBUG: Request Body:", json.dumps(payload, ensure_ascii=False))
        else:
            print("\nSending your question to ChatGPT, please wait...\n")

        with tracer.start_as_current_span("agent.exchange") as span:
            span.set_attribute("thread.id", thread.id)
            span.set_attribute("run.id", str(uuid.uuid4()))
            span.set_attribute("question.len", len(query))
            t0 = time.perf_counter()
            try:
                choices = await self.client.complete(self.api_key, payload)
            except TransportError as e:
                span.set_attribute("exchange.failed", True)
                return ExchangeResult(thread=current, error=e)
            finally:
                span.set_attribute("agent.elapsed_ms", int((time.perf_counter() - t0) * 1000))

            if not choices:
                return ExchangeResult(thread=current)

            # Only the first choice is kept
            reply = choices[0]
            span.set_attribute("answer.len", len(reply))
            return ExchangeResult(thread=current.append(Message(role="assistant", content=reply)), reply=reply)

    def commit(self, result: ExchangeResult) -> None:
        """Persist a completed exchange and make its thread the active one."""
        try:
            self.workspace.threads.save(result.thread)
        except StoreWriteError as e:
            print(f"Failed to save thread: {e}")
            return
        try:
            self.workspace.sessions.set_active_id(result.thread.id)
        except StoreWriteError as e:
            print(f"Failed to set active thread ID: {e}")

    async def ask(self, thread: Thread, query: str) -> Thread:
        """Run one exchange, report it, and return the thread to continue from."""
        result = await self.exchange(thread, query)
        if not result.ok:
            # The user turn was sent but is not written to disk
            print(f"Error during request: {result.error}")
            logger.debug("Exchange on thread [%s] abandoned", thread.id)
            return thread

        if result.reply is not None:
            print(result.reply)
        else:
            print("No response content from ChatGPT.")
        self.commit(result)
        return result.thread

    async def interactive(
        self,
        thread: Thread,
        read_line: Optional[Callable[[str], str]] = None,
        first_query: Optional[str] = None,
    ) -> Thread:
        reader = read_line or input
        print(f"Chatting in thread [{thread.id}]. Type {EXIT_COMMAND} to quit.")

        if first_query and first_query.strip():
            thread = await self.ask(thread, first_query)

        while True:
            try:
                line = reader("> ")
            except EOFError:
                print()
                break
            query = line.strip()
            if not query:
                continue
            if query.lower() == EXIT_COMMAND:
                break
            thread = await self.ask(thread, query)
        return thread
