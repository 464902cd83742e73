import json
import time
from urllib.parse import parse_qs, urlsplit

import jwt
import pytest
import requests
from requests.adapters import BaseAdapter

from gastroapp.services.api_client import ApiClient
from gastroapp.services.credential_store import MemoryCredentialStore

BASE_URL = "http://backend.test"


class FakeBackend(BaseAdapter):
    """Transport adapter answering from canned routes and recording every request."""

    def __init__(self):
        super().__init__()
        self.routes = {}
        self.requests = []

    def add(self, method, path, status=200, body=None, error=None):
        self.routes[(method, path)] = (status, body, error)

    def send(self, request, **kwargs):
        self.requests.append(request)
        path = urlsplit(request.url).path
        status, body, error = self.routes.get((request.method, path), (404, {"detail": "Not Found"}, None))
        if error is not None:
            raise error

        resp = requests.Response()
        resp.status_code = status
        resp.url = request.url
        resp.request = request
        resp.encoding = "utf-8"
        if body is None:
            resp._content = b""
        elif isinstance(body, str):
            resp._content = body.encode("utf-8")
            resp.headers["Content-Type"] = "text/plain"
        else:
            resp._content = json.dumps(body).encode("utf-8")
            resp.headers["Content-Type"] = "application/json"
        return resp

    def close(self):
        pass

    @property
    def last(self):
        return self.requests[-1]


def query_of(request):
    return parse_qs(urlsplit(request.url).query)


def json_of(request):
    return json.loads(request.body) if request.body else None


class RecordingStore(MemoryCredentialStore):
    def __init__(self):
        super().__init__()
        self.writes = []

    def set(self, name, value, expires=None):
        self.writes.append((name, value, expires))
        super().set(name, value, expires=expires)


def make_token(exp_in=3600, **claims):
    if exp_in is not None:
        claims["exp"] = int(time.time()) + exp_in
    return jwt.encode(claims, "test-secret", algorithm="HS256")


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def client(backend, store):
    session = requests.Session()
    session.mount("http://", backend)
    return ApiClient(base_url=BASE_URL, credential_store=store, session=session)
