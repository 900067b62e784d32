"""Shared fixtures — in-memory SQLite DB with all tables, and a TzKT client
whose HTTP traffic is served from canned payloads."""

from collections.abc import Callable, Generator

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from bakerpay.services.cache import TTLCache
from bakerpay.services.tzkt_client import TzKTClient
from db.models import Base

TZKT_TEST_URL = "https://tzkt.test"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    eng: Engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine: Engine) -> Generator[Session, None, None]:
    factory: sessionmaker[Session] = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    sess: Session = factory()
    yield sess
    sess.rollback()
    sess.close()


class FakeTzKT:
    """Routes request paths to canned responses and records every call."""

    def __init__(self) -> None:
        self.routes: dict[str, httpx.Response | Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: list[str] = []

    def json(self, path: str, payload: object, status_code: int = 200) -> None:
        self.routes[path] = httpx.Response(status_code, json=payload)

    def status(self, path: str, status_code: int) -> None:
        self.routes[path] = httpx.Response(status_code, text="error")

    def raise_error(self, path: str, exc: Exception) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc

        self.routes[path] = _raise

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if callable(route):
            return route(request)
        return route

    def count(self, path: str) -> int:
        return self.calls.count(path)


@pytest.fixture()
def tzkt() -> FakeTzKT:
    return FakeTzKT()


@pytest.fixture()
def make_client(tzkt: FakeTzKT) -> Generator[Callable[..., TzKTClient], None, None]:
    created: list[TzKTClient] = []

    def _make(**kwargs: object) -> TzKTClient:
        http = httpx.Client(base_url=TZKT_TEST_URL, transport=httpx.MockTransport(tzkt.handler))
        kwargs.setdefault("cache", TTLCache())
        kwargs.setdefault("retry_attempts", 1)
        kwargs.setdefault("retry_delay", 0.0)
        client = TzKTClient(base_url=TZKT_TEST_URL, http_client=http, **kwargs)
        created.append(client)
        return client

    yield _make
    for client in created:
        client.close()


@pytest.fixture()
def client(make_client: Callable[..., TzKTClient]) -> TzKTClient:
    return make_client()
