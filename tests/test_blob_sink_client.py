"""Unit tests for WebhookBlobSink using httpx.MockTransport."""

import httpx
import pytest

from coordinator.blob_sink_client import TransientSinkError, WebhookBlobSink
from coordinator.exceptions import UpstreamFailureError

WEBHOOK = "https://chat.example.test/api/webhooks/123/secret-token"


def make_sink(handler, max_retries=2):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookBlobSink(WEBHOOK, max_retries=max_retries, retry_delay=0, client=client)


def attachment_response(name, size, message_id="987"):
    return httpx.Response(200, json={
        "id": message_id,
        "attachments": [{
            "filename": name,
            "size": size,
            "url": f"https://cdn.example.test/attachments/1/{message_id}/{name}",
        }],
    })


@pytest.mark.asyncio
async def test_store_returns_attachment_handle():
    seen = {}

    def handler(request):
        seen['method'] = request.method
        seen['wait'] = request.url.params.get('wait')
        seen['body'] = request.read()
        return attachment_response("movie.mkv.part001", 5)

    sink = make_sink(handler)
    stored = await sink.store("movie.mkv.part001", b"hello")

    assert seen['method'] == 'POST'
    assert seen['wait'] == 'true'
    assert b'filename="movie.mkv.part001"' in seen['body']
    assert stored.handle == "https://cdn.example.test/attachments/1/987/movie.mkv.part001"
    assert stored.size == 5
    assert stored.object_id == "987"


@pytest.mark.asyncio
async def test_store_no_content_is_failure():
    sink = make_sink(lambda request: httpx.Response(204))

    with pytest.raises(UpstreamFailureError, match="204"):
        await sink.store("a.bin", b"data")


@pytest.mark.asyncio
async def test_store_without_attachment_is_failure():
    sink = make_sink(lambda request: httpx.Response(200, json={"id": "1", "attachments": []}))

    with pytest.raises(UpstreamFailureError, match="no attachment"):
        await sink.store("a.bin", b"data")


@pytest.mark.asyncio
async def test_store_size_mismatch_is_failure():
    sink = make_sink(lambda request: attachment_response("a.bin", 3))

    with pytest.raises(UpstreamFailureError, match="confirmed 3 bytes"):
        await sink.store("a.bin", b"data")


@pytest.mark.asyncio
async def test_store_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(413, text="Request entity too large")

    sink = make_sink(handler)
    with pytest.raises(UpstreamFailureError) as exc_info:
        await sink.store("a.bin", b"data")

    assert not isinstance(exc_info.value, TransientSinkError)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_store_retries_server_errors():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return attachment_response("a.bin", 4)

    sink = make_sink(handler, max_retries=2)
    stored = await sink.store("a.bin", b"data")

    assert len(calls) == 3
    assert stored.size == 4


@pytest.mark.asyncio
async def test_store_gives_up_after_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, json={"retry_after": 1})

    sink = make_sink(handler, max_retries=1)
    with pytest.raises(TransientSinkError):
        await sink.store("a.bin", b"data")

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_store_connection_error_is_upstream_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    sink = make_sink(handler, max_retries=0)
    with pytest.raises(UpstreamFailureError, match="unreachable"):
        await sink.store("a.bin", b"data")


@pytest.mark.asyncio
async def test_store_without_webhook_url():
    sink = WebhookBlobSink("", retry_delay=0)

    with pytest.raises(UpstreamFailureError, match="not configured"):
        await sink.store("a.bin", b"data")


@pytest.mark.asyncio
async def test_fetch_returns_bytes():
    sink = make_sink(lambda request: httpx.Response(200, content=b"part-bytes"))

    assert await sink.fetch("https://cdn.example.test/attachments/1/2/a.bin") == b"part-bytes"


@pytest.mark.asyncio
async def test_fetch_not_found():
    sink = make_sink(lambda request: httpx.Response(404))

    with pytest.raises(UpstreamFailureError, match="Status: 404"):
        await sink.fetch("https://cdn.example.test/attachments/1/2/a.bin")


@pytest.mark.asyncio
async def test_delete_message():
    seen = {}

    def handler(request):
        seen['method'] = request.method
        seen['path'] = request.url.path
        return httpx.Response(204)

    sink = make_sink(handler)

    assert await sink.delete("987") is True
    assert seen['method'] == 'DELETE'
    assert seen['path'] == "/api/webhooks/123/secret-token/messages/987"


@pytest.mark.asyncio
async def test_delete_missing_message_counts_as_deleted():
    sink = make_sink(lambda request: httpx.Response(404))

    assert await sink.delete("987") is True


@pytest.mark.asyncio
async def test_delete_forbidden_returns_false():
    sink = make_sink(lambda request: httpx.Response(403))

    assert await sink.delete("987") is False


@pytest.mark.asyncio
async def test_store_timeout_is_upstream_failure_after_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("read timed out", request=request)

    sink = make_sink(handler, max_retries=2)
    with pytest.raises(UpstreamFailureError, match="timed out"):
        await sink.store("a.bin", b"data")

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_fetch_timeout_is_upstream_failure():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    sink = make_sink(handler, max_retries=0)
    with pytest.raises(UpstreamFailureError):
        await sink.fetch("https://cdn.example.test/attachments/1/2/a.bin")
