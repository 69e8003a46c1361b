"""Tests for CommandDispatcher and the commands it runs."""

import asyncio
import contextlib
import subprocess
from collections.abc import Iterator
from unittest.mock import MagicMock

import httpx
import pytest

from mercury.api.client import APIError
from mercury.api.types import Email, EmailListResponse, SendRequest, SendResponse
from mercury.tui import commands
from mercury.tui.commands import (
    DeleteEmail,
    FetchCatalog,
    FetchDetail,
    LaunchEditor,
    MarkRead,
    SendEmail,
    Tick,
)
from mercury.tui.dispatcher import CommandDispatcher
from mercury.tui.messages import (
    CatalogFetched,
    Deleted,
    DetailFetched,
    EditorClosed,
    Failed,
    MarkedRead,
    Sent,
    SpinnerTick,
)


# ── Helpers ────────────────────────────────────────────────────────────────────


@pytest.fixture
def queue() -> asyncio.Queue:
    return asyncio.Queue()


async def next_msg(queue: asyncio.Queue):  # noqa: ANN201
    return await asyncio.wait_for(queue.get(), timeout=1)


def fake_run(returncode: int = 0, exc: Exception | None = None):  # noqa: ANN201
    calls: list[list[str]] = []

    def _run(argv: list[str], check: bool = False) -> subprocess.CompletedProcess:
        calls.append(argv)
        if exc is not None:
            raise exc
        return subprocess.CompletedProcess(argv, returncode)

    _run.calls = calls  # type: ignore[attr-defined]
    return _run


# ── API commands ───────────────────────────────────────────────────────────────


class TestApiCommands:
    async def test_fetch_catalog(self, client: MagicMock, queue: asyncio.Queue) -> None:
        emails = [Email(id=1), Email(id=2)]
        client.list_emails.return_value = EmailListResponse(emails=emails, total=9)

        CommandDispatcher(queue).dispatch([FetchCatalog(client=client, limit=2, folder="inbox")])

        assert await next_msg(queue) == CatalogFetched(emails=emails, total=9)
        client.list_emails.assert_awaited_once_with(2, 0, "inbox")

    async def test_fetch_detail(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.get_email.return_value = Email(id=4, subject="Hi")
        CommandDispatcher(queue).dispatch([FetchDetail(client=client, email_id=4)])
        msg = await next_msg(queue)
        assert isinstance(msg, DetailFetched)
        assert msg.email.subject == "Hi"

    async def test_mark_read_and_delete(self, client: MagicMock, queue: asyncio.Queue) -> None:
        dispatcher = CommandDispatcher(queue)
        dispatcher.dispatch([MarkRead(client=client, email_id=3)])
        assert await next_msg(queue) == MarkedRead(email_id=3)

        dispatcher.dispatch([DeleteEmail(client=client, email_id=3)])
        assert await next_msg(queue) == Deleted(email_id=3)
        client.delete_email.assert_awaited_once_with(3, permanent=False)

    async def test_send(self, client: MagicMock, queue: asyncio.Queue) -> None:
        request = SendRequest(to="a@b.c", subject="Hi", text="x")
        CommandDispatcher(queue).dispatch([SendEmail(client=client, request=request)])
        assert await next_msg(queue) == Sent(message_id="msg-1")
        client.send_email.assert_awaited_once_with(request)

    async def test_send_reported_failure(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.send_email.return_value = SendResponse(success=False, error="quota exceeded")
        request = SendRequest(to="a@b.c", subject="Hi", text="x")
        CommandDispatcher(queue).dispatch([SendEmail(client=client, request=request)])
        assert await next_msg(queue) == Failed(error="send failed: quota exceeded")

    async def test_send_failure_without_reason(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.send_email.return_value = SendResponse(success=False, message_id="")
        request = SendRequest(to="a@b.c", subject="Hi", text="x")
        CommandDispatcher(queue).dispatch([SendEmail(client=client, request=request)])
        assert await next_msg(queue) == Failed(error="send failed: server reported failure")


class TestFailures:
    async def test_api_error_becomes_failed(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.get_email.side_effect = APIError(404, "Email not found")
        CommandDispatcher(queue).dispatch([FetchDetail(client=client, email_id=1)])
        assert await next_msg(queue) == Failed(
            error="server returned 404: Email not found (press r to refresh)"
        )

    async def test_unauthorized_points_at_the_secret(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.list_emails.side_effect = APIError(401, "Unauthorized")
        CommandDispatcher(queue).dispatch([FetchCatalog(client=client)])
        assert await next_msg(queue) == Failed(
            error="server returned 401: Unauthorized (check MERCURY_API_SECRET)"
        )

    async def test_rate_limit_is_explained(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.mark_as_read.side_effect = APIError(429, "slow down")
        CommandDispatcher(queue).dispatch([MarkRead(client=client, email_id=1)])
        msg = await next_msg(queue)
        assert msg.error.endswith("(rate limited, try again shortly)")

    async def test_other_api_errors_are_shown_as_is(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.get_email.side_effect = APIError(500, "boom")
        CommandDispatcher(queue).dispatch([FetchDetail(client=client, email_id=1)])
        assert await next_msg(queue) == Failed(error="server returned 500: boom")

    async def test_transport_error_becomes_failed(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.list_emails.side_effect = httpx.ConnectError("connection refused")
        CommandDispatcher(queue).dispatch([FetchCatalog(client=client)])
        assert await next_msg(queue) == Failed(error="request failed: connection refused")

    async def test_concurrent_commands_all_report(self, client: MagicMock, queue: asyncio.Queue) -> None:
        client.get_email.side_effect = lambda email_id: Email(id=email_id)
        CommandDispatcher(queue).dispatch([
            FetchDetail(client=client, email_id=1),
            FetchDetail(client=client, email_id=2),
        ])
        ids = {(await next_msg(queue)).email.id, (await next_msg(queue)).email.id}
        assert ids == {1, 2}


# ── Timer ──────────────────────────────────────────────────────────────────────


class TestTick:
    async def test_tick_reports_its_tag(self, queue: asyncio.Queue) -> None:
        CommandDispatcher(queue).dispatch([Tick(tag=3, interval=0)])
        assert await next_msg(queue) == SpinnerTick(tag=3)

    async def test_aclose_cancels_pending_work(self, queue: asyncio.Queue) -> None:
        dispatcher = CommandDispatcher(queue)
        dispatcher.dispatch([Tick(tag=1, interval=60)])
        assert dispatcher.pending == 1

        await dispatcher.aclose()

        assert dispatcher.pending == 0
        assert queue.empty()


# ── Editor ─────────────────────────────────────────────────────────────────────


class TestEditor:
    def test_runs_inside_suspend(self, queue: asyncio.Queue, monkeypatch: pytest.MonkeyPatch) -> None:
        events: list[str] = []
        run = fake_run()
        monkeypatch.setattr(commands.subprocess, "run", run)

        @contextlib.contextmanager
        def suspend() -> Iterator[None]:
            events.append("suspend")
            yield
            events.append("resume")

        CommandDispatcher(queue, suspend=suspend).dispatch(
            [LaunchEditor(argv=("vim", "/tmp/d.txt"), path="/tmp/d.txt")]
        )

        assert events == ["suspend", "resume"]
        assert run.calls == [["vim", "/tmp/d.txt"]]
        assert queue.get_nowait() == EditorClosed(path="/tmp/d.txt")

    def test_non_zero_exit(self, queue: asyncio.Queue, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(commands.subprocess, "run", fake_run(returncode=1))
        CommandDispatcher(queue).dispatch([LaunchEditor(argv=("vim", "/tmp/d.txt"), path="/tmp/d.txt")])
        assert queue.get_nowait() == EditorClosed(
            path="/tmp/d.txt", error="editor 'vim' exited with status 1"
        )

    def test_missing_editor(self, queue: asyncio.Queue, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(commands.subprocess, "run", fake_run(exc=FileNotFoundError("no such file")))
        CommandDispatcher(queue).dispatch([LaunchEditor(argv=("nope", "/tmp/d.txt"), path="/tmp/d.txt")])
        msg = queue.get_nowait()
        assert msg.path == "/tmp/d.txt"
        assert msg.error.startswith("launch editor 'nope':")

    def test_suspend_failure_is_reported(self, queue: asyncio.Queue, monkeypatch: pytest.MonkeyPatch) -> None:
        run = fake_run()
        monkeypatch.setattr(commands.subprocess, "run", run)

        def suspend() -> contextlib.AbstractContextManager[None]:
            raise RuntimeError("cannot suspend")

        CommandDispatcher(queue, suspend=suspend).dispatch(
            [LaunchEditor(argv=("vim", "/tmp/d.txt"), path="/tmp/d.txt")]
        )

        assert queue.get_nowait() == EditorClosed(path="/tmp/d.txt", error="cannot suspend")
        assert run.calls == []
