# tests/conftest.py
import os
import sys
import asyncio
import json

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.abspath("."))

from addressbook.database import Base, get_db
from addressbook.services import AddressBookService, get_service
from addressbook import models  # noqa: F401  registers the tables on Base
from main import app


# DB (SQLite in-memory for tests)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Fresh tables for every test so listings and counts start empty
@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def service(db_session):
    return AddressBookService(db_session)


# One event loop for the WHOLE pytest session
@pytest.fixture(scope="session")
def session_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


# Simple ASGI response/client
class SimpleResponse:
    def __init__(
        self, status_code: int, body: bytes, headers: list[tuple[bytes, bytes]]
    ):
        self.status_code = status_code
        self._body = body
        self.headers = {k.decode(): v.decode() for k, v in headers}

    def json(self):
        return json.loads(self._body.decode())


class SimpleClient:
    """
    Important:
    - uses ONE shared session loop (passed from fixture)
    - does NOT call asyncio.run()
    - does NOT close the loop
    - does NOT follow redirects
    - with raise_server_exceptions=False, an exception re-raised after the
      500 response was sent is swallowed and the sent response returned
    """

    def __init__(self, app, loop, raise_server_exceptions: bool = True):
        self.app = app
        self.loop = loop
        self.raise_server_exceptions = raise_server_exceptions

    def close(self):
        # do not close the loop here (session fixture closes it)
        pass

    def request(self, method: str, path: str, json_body=None, data=None, headers=None):
        headers = headers or {}
        body_bytes = b""

        if json_body is not None:
            body_bytes = json.dumps(json_body).encode()
            headers.setdefault("content-type", "application/json")

        elif data is not None:
            body_bytes = data if isinstance(data, bytes) else str(data).encode()
            headers.setdefault("content-type", "application/json")

        raw_headers = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
        scope = {
            "type": "http",
            "method": method.upper(),
            "path": path,
            "headers": raw_headers,
            "query_string": b"",
            "client": ("testclient", 5000),
        }

        async def receive():
            nonlocal body_bytes
            chunk, body_bytes = body_bytes, b""
            return {"type": "http.request", "body": chunk, "more_body": False}

        response_body = bytearray()
        response_status = 500
        response_headers: list[tuple[bytes, bytes]] = []

        async def send(message):
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = message.get("headers", [])
            elif message["type"] == "http.response.body":
                response_body.extend(message.get("body", b""))

        # ensure the loop is the current one
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self.app(scope, receive, send))
        except Exception:
            if self.raise_server_exceptions:
                raise
        return SimpleResponse(response_status, bytes(response_body), response_headers)

    def get(self, path: str, headers=None):
        return self.request("GET", path, headers=headers)

    def post(self, path: str, json=None, data=None, headers=None):
        return self.request("POST", path, json_body=json, data=data, headers=headers)

    def put(self, path: str, json=None, data=None, headers=None):
        return self.request("PUT", path, json_body=json, data=data, headers=headers)

    def patch(self, path: str, json=None, data=None, headers=None):
        return self.request("PATCH", path, json_body=json, data=data, headers=headers)

    def delete(self, path: str, headers=None):
        return self.request("DELETE", path, headers=headers)


# Client fixture: override DB dependency per test
@pytest.fixture()
def client(db_session, session_loop):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    c = SimpleClient(app, loop=session_loop)
    try:
        yield c
    finally:
        app.dependency_overrides.clear()
        c.close()


# Same client, but a full update of a missing id answers 404 instead of inserting
@pytest.fixture()
def strict_client(client, db_session):
    app.dependency_overrides[get_service] = lambda: AddressBookService(
        db_session, upsert_on_put=False
    )
    return client


# Client that returns the 500 envelope even when the server re-raises the error
@pytest.fixture()
def lenient_client(client, session_loop):
    return SimpleClient(app, loop=session_loop, raise_server_exceptions=False)
