"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides fake capabilities (decoder, gateway, identity), a workflow
controller wired to them, an in-memory record store, and an API client
whose session registry uses that store.

==============================================================================
"""

import os

# Configure before the app (and its cached settings) is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789")
os.environ.setdefault("NOTIFICATION_TTL_SECONDS", "60")

import itertools
from typing import Callable, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.dependencies import get_session_registry
from app.db.database import DatabaseManager
from app.db.models import MemberRole
from app.scanner.decoder import CameraError
from app.schemas.record import RecordCreate, RecordOut
from app.services.identity_service import IdentityError
from app.services.session_service import SessionRegistry
from app.services.submission_gateway import SqlSubmissionGateway
from app.workflow.controller import WorkflowController


ULTRASEAL = '{"name":"UltraSeal","batch":"B1","bag":"BG1","id":"P1","qty":"5KG"}'


# ============================================================================
# FAKE CAPABILITIES
# ============================================================================

class FakeDecoder:
    """Decoder driven by the test instead of a camera."""

    def __init__(self, fail_start: bool = False):
        self.fail_start = fail_start
        self.starts = 0
        self.stops = 0
        self._on_decode: Optional[Callable[[str], None]] = None
        self._on_error: Optional[Callable[[CameraError], None]] = None

    @property
    def is_running(self) -> bool:
        return self._on_decode is not None

    def start(self, on_decode, on_error) -> None:
        self.starts += 1
        if self.fail_start:
            raise RuntimeError("camera unavailable")
        self._on_decode = on_decode
        self._on_error = on_error

    def stop(self) -> None:
        self.stops += 1
        self._on_decode = None
        self._on_error = None

    def emit(self, text: str) -> None:
        assert self._on_decode is not None, "decoder is not running"
        self._on_decode(text)

    def emit_error(self, name: str, detail: Optional[str] = None) -> None:
        assert self._on_error is not None, "decoder is not running"
        self._on_error(CameraError.from_browser(name, detail))


class FakeGateway:
    """In-memory record store with switchable failures."""

    def __init__(self, fail_after: Optional[int] = None):
        self.fail_after = fail_after
        self.writes: List[RecordCreate] = []
        self.records: List[RecordOut] = []
        self.unsubscribed = 0
        self._subscribers: Dict[int, Callable] = {}
        self._ids = itertools.count(1)
        self._timestamps = itertools.count(1_700_000_000_000)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def write(self, record: RecordCreate) -> RecordOut:
        self.writes.append(record)
        if self.fail_after is not None and len(self.writes) > self.fail_after:
            raise RuntimeError("write rejected")

        saved = RecordOut(
            id=next(self._ids),
            timestamp=next(self._timestamps),
            **record.model_dump()
        )
        self.records.append(saved)
        for callback in list(self._subscribers.values()):
            callback(list(self.records))
        return saved

    def subscribe(self, on_change):
        key = id(on_change)
        self._subscribers[key] = on_change
        on_change(list(self.records))

        def unsubscribe() -> None:
            if self._subscribers.pop(key, None) is not None:
                self.unsubscribed += 1

        return unsubscribe

    async def settle(self) -> None:
        return None


class FakeIdentity:
    """Identity that succeeds unless told otherwise."""

    def __init__(self, session_uid: str = "test-session", fail: bool = False):
        self.session_uid = session_uid
        self.fail = fail
        self.calls = 0

    async def ensure(self) -> str:
        self.calls += 1
        if self.fail:
            raise IdentityError("offline")
        return self.session_uid


def make_record(product_id: str = "P1", **overrides) -> RecordCreate:
    """Build a valid RecordCreate for gateway tests."""
    fields = {
        "product_name": "UltraSeal",
        "batch_number": "B1",
        "bag_number": "BG1",
        "product_id": product_id,
        "quantity": "5KG",
        "member_name": "Ravi",
        "member_id": "M-001",
        "role": MemberRole.APPLICATOR,
        "session_uid": "test-session",
    }
    fields.update(overrides)
    return RecordCreate(**fields)


# ============================================================================
# WORKFLOW FIXTURES
# ============================================================================

@pytest.fixture
def decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def controller(
    decoder: FakeDecoder,
    gateway: FakeGateway,
    identity: FakeIdentity
) -> WorkflowController:
    """Controller on the welcome view wired to fakes."""
    return WorkflowController(
        decoder=decoder,
        gateway=gateway,
        identity=identity,
        session_uid="test-session"
    )


@pytest.fixture
def cart_controller(controller: WorkflowController, decoder: FakeDecoder) -> WorkflowController:
    """Applicator controller with one scanned item, on the cart view."""
    controller.select_role(MemberRole.APPLICATOR)
    decoder.emit(ULTRASEAL)
    return controller


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def db_manager() -> Generator[DatabaseManager, None, None]:
    """Fresh in-memory record store for each test."""
    manager = DatabaseManager("sqlite://")
    manager.create_tables()
    try:
        yield manager
    finally:
        manager.drop_tables()
        manager.dispose()


@pytest.fixture
def sql_gateway(db_manager: DatabaseManager) -> SqlSubmissionGateway:
    return SqlSubmissionGateway(db_manager=db_manager, namespace="test")


# ============================================================================
# API FIXTURES
# ============================================================================

@pytest.fixture
def registry(sql_gateway: SqlSubmissionGateway) -> Generator[SessionRegistry, None, None]:
    registry = SessionRegistry(gateway=sql_gateway)
    yield registry
    registry.close_all()


@pytest.fixture(scope="function")
def client(registry: SessionRegistry) -> Generator[TestClient, None, None]:
    """Create test client with session registry override."""
    app.dependency_overrides[get_session_registry] = lambda: registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def session_token(client: TestClient) -> str:
    """Token of a freshly opened session."""
    response = client.post("/api/v1/sessions")
    assert response.status_code == 201
    return response.json()["token"]


@pytest.fixture
def session_headers(session_token: str) -> Dict[str, str]:
    """Authorization headers for the fresh session."""
    return {"Authorization": f"Bearer {session_token}"}
