import asyncio

from api.handlers import _relay_stream, to_response
from core.request_types import BufferedBody, FinalResponse, NoBody, StreamBody


def test_to_response_keeps_raw_header_bytes():
    final = FinalResponse(
        status_code=200,
        headers=[
            (b"X-Note", "price €5".encode()),
            (b"X-Name", b"caf\xc3\xa9"),
            (b"Set-Cookie", b"a=1"),
            (b"Set-Cookie", b"b=2"),
        ],
        body=BufferedBody(b"hello"),
    )

    response = to_response(final)

    assert response.raw_headers == [
        (b"x-note", b"price \xe2\x82\xac5"),
        (b"x-name", b"caf\xc3\xa9"),
        (b"set-cookie", b"a=1"),
        (b"set-cookie", b"b=2"),
        (b"content-length", b"5"),
    ]
    assert response.body == b"hello"


def test_to_response_without_body():
    response = to_response(FinalResponse(204, [(b"Cache-Control", b"no-store")], NoBody()))

    assert response.status_code == 204
    assert response.raw_headers == [(b"cache-control", b"no-store")]


def test_stream_closed_when_caller_disconnects():
    closed = []

    async def chunks():
        yield b"first"
        yield b"second"

    async def close():
        closed.append(True)

    async def run():
        relayed = _relay_stream(StreamBody(chunks(), close))
        first = await relayed.__anext__()
        # Starlette closes the iterator when the client goes away
        await relayed.aclose()
        return first

    assert asyncio.run(run()) == b"first"
    assert closed == [True]


def test_stream_closed_after_last_chunk():
    closed = []

    async def chunks():
        yield b"only"

    async def close():
        closed.append(True)

    async def run():
        return [chunk async for chunk in _relay_stream(StreamBody(chunks(), close))]

    assert asyncio.run(run()) == [b"only"]
    assert closed == [True]
