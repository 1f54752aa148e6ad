import asyncio

import httpx

from core.request_types import (
    BufferedBody,
    InboundRequest,
    NoBody,
    RelayFailure,
    StreamBody,
)
from services.relay_service import RelayService, error_response
from services.upstream import UpstreamClient
from tests.conftest import FakeUpstream, RecordingLogger, make_config


def _service(handler, logger=None):
    target = make_config().upstream.target()
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return RelayService(target, UpstreamClient(client, target), logger or RecordingLogger())


async def _drain(final):
    body = b"".join([chunk async for chunk in final.body.chunks])
    await final.body.close()
    return body


def test_final_response_keeps_status_and_reason():
    upstream = FakeUpstream()
    upstream.handler = lambda request: upstream.response(404, content=b"missing")
    service = _service(upstream)

    async def run():
        final = await service.relay(InboundRequest("GET", "/nothing"))
        return final, await _drain(final)

    final, body = asyncio.run(run())

    assert final.status_code == 404
    assert final.reason_phrase == "Not Found"
    assert isinstance(final.body, StreamBody)
    assert body == b"missing"
    assert upstream.streams[-1].closed


def test_upstream_header_bytes_are_copied_unchanged():
    upstream = FakeUpstream()
    upstream.handler = lambda request: upstream.response(
        200,
        headers=[(b"X-Note", "price €5".encode()), (b"X-Name", b"caf\xc3\xa9")],
        content=b"ok",
    )
    service = _service(upstream)

    async def run():
        final = await service.relay(InboundRequest("GET", "/"))
        await _drain(final)
        return final

    final = asyncio.run(run())

    assert (b"X-Note", b"price \xe2\x82\xac5") in final.headers
    assert (b"X-Name", b"caf\xc3\xa9") in final.headers


def test_build_outbound():
    service = _service(FakeUpstream())
    request = InboundRequest(
        "POST",
        "/v1/a%2Fb",
        "x=1",
        headers=[
            (b"content-type", b"application/json"),
            (b"content-length", b"9"),
            (b"host", b"edge"),
        ],
        body=BufferedBody(b'{ "k": 1}'),
    )

    outbound = asyncio.run(service.build_outbound(request))

    assert outbound.url == "https://api.example.com/v1/a%2Fb?x=1"
    assert outbound.headers == [
        (b"content-type", b"application/json"),
        (b"Host", b"api.example.com"),
    ]
    assert outbound.body == BufferedBody(b'{"k":1}')


def test_unexpected_error_becomes_failure():
    def handler(request):
        raise RuntimeError("boom")

    logger = RecordingLogger()
    service = _service(handler, logger)

    final = asyncio.run(service.handle(InboundRequest("GET", "/", body=NoBody())))

    assert final == error_response()
    assert logger.errors[0][0] == "internal"
    assert logger.responses == [("GET", "/", 502)]


def test_failure_is_returned_not_raised():
    def handler(request):
        raise httpx.ConnectError("dns failure", request=request)

    result = asyncio.run(_service(handler).relay(InboundRequest("DELETE", "/x")))

    assert isinstance(result, RelayFailure)
    assert result.kind == "upstream_connection"
    assert result.error.provider == "api.example.com"
