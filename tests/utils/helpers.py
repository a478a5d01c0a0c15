"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from src.services.postgrest import DataClient


class RecordingTransport:
    """httpx.MockTransport handler that remembers every request it served."""

    def __init__(self, responder: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.requests: List[httpx.Request] = []
        self.responder = responder or (lambda request: httpx.Response(200, json=[]))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_data_client(
    responder: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    access_token: Optional[str] = "valid-token",
) -> Tuple[DataClient, RecordingTransport]:
    """DataClient wired to an in-memory transport."""
    recorder = RecordingTransport(responder)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    client = DataClient(
        "https://test.supabase.co",
        "test-anon-key",
        access_token=access_token,
        http_client=http_client,
    )
    return client, recorder


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


class FakeSupabaseClient:
    """Stand-in for SupabaseClient that yields a prepared DataClient."""

    def __init__(self, client: DataClient):
        self.client = client
        self.access_tokens: List[Optional[str]] = []

    def __call__(self, access_token=None, settings=None):
        self.access_tokens.append(access_token)
        return self

    async def __aenter__(self) -> DataClient:
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class MockSocket:
    """Socket double feeding one raw HTTP request and capturing the reply."""

    def __init__(self, raw_request: bytes):
        self.raw_request = raw_request
        self.sent = bytearray()

    def makefile(self, *args, **kwargs):
        return BytesIO(self.raw_request)

    def sendall(self, data):
        self.sent.extend(data)

    def close(self):
        pass


class HandlerResponse:
    def __init__(self, raw: bytes):
        head, _, body = raw.partition(b"\r\n\r\n")
        lines = head.decode("iso-8859-1").split("\r\n")
        self.status = int(lines[0].split(" ")[1])
        self.headers: List[Tuple[str, str]] = []
        for line in lines[1:]:
            name, _, value = line.partition(":")
            self.headers.append((name.strip(), value.strip()))
        self.body = body

    def header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None

    def header_values(self, name: str) -> List[str]:
        return [value for key, value in self.headers if key.lower() == name.lower()]

    def json(self) -> Dict[str, Any]:
        return json.loads(self.body.decode("utf-8"))


def run_handler(
    handler_cls,
    method: str,
    path: str,
    headers: Optional[Dict[str, str]] = None,
    body: Optional[Any] = None,
) -> HandlerResponse:
    """Drive a Vercel BaseHTTPRequestHandler through one request."""
    if isinstance(body, (dict, list)):
        payload = json.dumps(body).encode("utf-8")
    elif isinstance(body, str):
        payload = body.encode("utf-8")
    else:
        payload = b""

    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if payload:
        lines.append(f"Content-Length: {len(payload)}")
    raw = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + payload

    sock = MockSocket(raw)
    handler_cls(sock, ("127.0.0.1", 8000), None)
    return HandlerResponse(bytes(sock.sent))
