import httpx

from gippy.agents.chat_agent import ChatSession, redact_key
from gippy.api.completions import ChatCompletionsClient
from gippy.errors import StoreWriteError, TransportError
from gippy.models import Message, Thread
from gippy.session_store import SessionStore
from gippy.thread_store import ThreadStore

PRIOR = Thread(
    id="T1",
    messages=(
        Message(role="user", content="earlier"),
        Message(role="assistant", content="earlier reply"),
    ),
)


def _session(workspace, endpoint, debug=False):
    return ChatSession(workspace=workspace, client=endpoint.client(), api_key="sk-test-1234", debug=debug)


async def test_exchange_appends_user_and_first_choice_only(workspace, endpoint_factory):
    endpoint = endpoint_factory("first", "second")

    result = await _session(workspace, endpoint).exchange(PRIOR, "next")

    assert result.ok
    assert result.reply == "first"
    assert result.thread.messages == PRIOR.messages + (
        Message(role="user", content="next"),
        Message(role="assistant", content="first"),
    )
    # The whole history goes over the wire
    assert endpoint.bodies[0]["messages"] == [m.to_dict() for m in result.thread.messages[:3]]
    # Nothing written yet
    assert not workspace.paths.thread_file("T1").exists()


async def test_exchange_with_zero_choices_keeps_only_user_turn(workspace, endpoint_factory):
    result = await _session(workspace, endpoint_factory()).exchange(PRIOR, "next")

    assert result.ok
    assert result.reply is None
    assert len(result.thread.messages) == len(PRIOR.messages) + 1
    assert result.thread.messages[-1] == Message(role="user", content="next")


async def test_exchange_failure_returns_error_and_user_turn(workspace, endpoint_factory):
    endpoint = endpoint_factory(error=httpx.ConnectError("down"))

    result = await _session(workspace, endpoint).exchange(PRIOR, "next")

    assert not result.ok
    assert isinstance(result.error, TransportError)
    assert result.thread.messages[-1] == Message(role="user", content="next")


async def test_ask_persists_and_moves_pointer(workspace, endpoint_factory, capsys):
    thread = await _session(workspace, endpoint_factory("hello back")).ask(Thread(id="NEW"), "hi")

    assert workspace.threads.load("NEW") == thread
    assert workspace.sessions.get_active_id() == "NEW"
    assert "hello back" in capsys.readouterr().out


async def test_ask_with_zero_choices_persists_dangling_user_turn(workspace, endpoint_factory, capsys):
    await _session(workspace, endpoint_factory()).ask(PRIOR, "anyone?")

    saved = workspace.threads.load("T1")
    assert saved.messages == PRIOR.messages + (Message(role="user", content="anyone?"),)
    assert workspace.sessions.get_active_id() == "T1"
    assert "No response content" in capsys.readouterr().out


async def test_ask_failure_skips_persistence(workspace, endpoint_factory, capsys):
    workspace.threads.save(PRIOR)
    workspace.sessions.set_active_id("OTHER")
    endpoint = endpoint_factory(status_code=500)

    thread = await _session(workspace, endpoint).ask(PRIOR, "lost turn")

    assert thread == PRIOR
    assert workspace.threads.load("T1") == PRIOR
    assert workspace.sessions.get_active_id() == "OTHER"
    assert len(endpoint.requests) == 1
    assert "Error during request" in capsys.readouterr().out


async def test_save_failure_is_reported_not_raised(workspace, endpoint_factory, monkeypatch, capsys):
    def _broken_save(self, thread):
        raise StoreWriteError("disk full")

    monkeypatch.setattr(ThreadStore, "save", _broken_save)

    await _session(workspace, endpoint_factory("ok")).ask(Thread(id="NEW"), "hi")

    assert "Failed to save thread: disk full" in capsys.readouterr().out
    assert workspace.sessions.get_active_id() is None


async def test_debug_prints_body_and_redacted_key(workspace, endpoint_factory, capsys):
    await _session(workspace, endpoint_factory("ok"), debug=True).exchange(Thread(id="T"), "hi")

    out = capsys.readouterr().out
    assert "DEBUG: Using API key: ****1234" in out
    assert "sk-test-1234" not in out
    assert '"temperature": 0.7' in out


def test_redact_key():
    assert redact_key("sk-abcdef") == "****cdef"


async def test_interactive_loop(workspace, endpoint_factory, replay):
    endpoint = endpoint_factory("pong")

    thread = await _session(workspace, endpoint).interactive(
        Thread(id="LOOP"), read_line=replay("", "   ", "ping", "again", " /EXIT ", "never sent")
    )

    assert len(endpoint.requests) == 2
    assert [m.content for m in thread.messages] == ["ping", "pong", "again", "pong"]
    assert workspace.threads.load("LOOP") == thread
    # Second request carries the first exchange
    assert len(endpoint.bodies[1]["messages"]) == 3


async def test_interactive_first_query_and_eof(workspace, endpoint_factory, replay):
    endpoint = endpoint_factory("pong")

    thread = await _session(workspace, endpoint).interactive(Thread(id="LOOP"), read_line=replay(), first_query="ping")

    assert [m.content for m in thread.messages] == ["ping", "pong"]


async def test_interactive_continues_after_failure_from_saved_state(workspace, replay):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ReadTimeout("slow")
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    client = ChatCompletionsClient("https://api.test/v1", 5.0, transport=httpx.MockTransport(handler))
    session = ChatSession(workspace=workspace, client=client, api_key="k")

    thread = await session.interactive(Thread(id="LOOP"), read_line=replay("dropped", "kept"))

    assert [m.content for m in thread.messages] == ["kept", "ok"]
    assert workspace.threads.load("LOOP") == thread


async def test_pointer_failure_is_reported_separately(workspace, endpoint_factory, monkeypatch, capsys):
    def _broken_set(self, thread_id):
        raise StoreWriteError("read-only")

    monkeypatch.setattr(SessionStore, "set_active_id", _broken_set)

    await _session(workspace, endpoint_factory("ok")).ask(Thread(id="NEW"), "hi")

    out = capsys.readouterr().out
    assert "Failed to set active thread ID: read-only" in out
    assert "Failed to save thread" not in out
    assert workspace.threads.load("NEW").messages[-1].content == "ok"
