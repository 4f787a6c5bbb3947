"""Shared fixtures for filesync tests."""

import re
import threading
import time
from typing import Callable, Dict, List

import httpx
import pytest


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.05) -> bool:
    """Poll predicate until it returns True or the timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def multipart_fields(request: httpx.Request) -> Dict[str, bytes]:
    """Split a multipart/form-data request body into {part name: payload}."""
    match = re.search(r"boundary=([^;]+)", request.headers["content-type"])
    assert match, "request is not multipart"
    boundary = b"--" + match.group(1).strip('"').encode()

    fields: Dict[str, bytes] = {}
    for part in request.content.split(boundary):
        headers, sep, payload = part.partition(b"\r\n\r\n")
        if not sep:
            continue
        name = re.search(rb'name="([^"]*)"', headers)
        if name is None:
            continue
        if payload.endswith(b"\r\n"):
            payload = payload[:-2]
        fields[name.group(1).decode()] = payload
    return fields


class RecordingServer:
    """In-process upload endpoint backed by httpx.MockTransport."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.error: Exception = None
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        with self._lock:
            self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text="ok")

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def fields(self, index: int = 0) -> Dict[str, bytes]:
        return multipart_fields(self.requests[index])


@pytest.fixture
def server():
    return RecordingServer()


@pytest.fixture
def client(server):
    with server.client() as c:
        yield c


@pytest.fixture
def wait():
    return wait_for
