"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Any, Mapping, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from opshub_api.actions.handlers import ActionContext, ActionHandlers
from opshub_api.attestation.provider import AnchoringProvider
from opshub_api.attestation.service import AttestationService
from opshub_api.auth.gate import AccessControlGate, Operator
from opshub_api.auth.identity import IdentityVerifier
from opshub_api.db.base import Base
from opshub_api.db.session import get_db
from opshub_api.main import create_app
from opshub_api.services.store import OpsStore
from opshub_api.settings import Settings
from opshub_api.workflow.policy import WorkflowPolicy
import opshub_api.models  # noqa: F401

# Use test database URL from environment or default to SQLite in-memory
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")

OPERATOR_ID = "did:privy:operator-1"
VALID_TOKEN = "valid-operator-token"
SERVICE_TOKEN = "svc-shared-token"


def ok_result(anchor_hash: str) -> dict:
    """Provider result carrying a primary tree hash."""
    return {"tag": "ok", "data": {"aquaTree": {"tree": {"hash": anchor_hash}}}}


class FakeProvider(AnchoringProvider):
    """In-memory anchoring provider that records every file object."""

    def __init__(
        self,
        result: Optional[Mapping[str, Any]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.result = result if result is not None else ok_result("0xanchor")
        self.error = error
        self.delay = delay
        self.calls = []

    async def create_genesis_revision(self, file_object):
        self.calls.append(dict(file_object))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class StaticVerifier(IdentityVerifier):
    """Identity verifier backed by a fixed token table."""

    def __init__(self, tokens: Optional[dict] = None):
        self.tokens = tokens if tokens is not None else {VALID_TOKEN: {"sub": OPERATOR_ID}}

    async def verify_token(self, token):
        return self.tokens.get(token)


@pytest.fixture(scope="function")
def db():
    """Create a test database session."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(TEST_DATABASE_URL)

    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def attestation(provider: FakeProvider) -> AttestationService:
    return AttestationService(provider, timeout_seconds=1.0)


@pytest.fixture
def policy() -> WorkflowPolicy:
    return WorkflowPolicy()


@pytest.fixture
def store(db: Session) -> OpsStore:
    return OpsStore(db)


@pytest.fixture
def handlers(store: OpsStore, attestation: AttestationService, policy: WorkflowPolicy) -> ActionHandlers:
    return ActionHandlers(store, attestation, policy)


@pytest.fixture
def ctx() -> ActionContext:
    return ActionContext(operator=Operator(operator_id=OPERATOR_ID), correlation_id="test-correlation")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite:///:memory:",
        attestation_service_token=SERVICE_TOKEN,
    )


@pytest.fixture
def app(db: Session, settings: Settings, attestation: AttestationService, policy: WorkflowPolicy):
    app = create_app(
        settings=settings,
        attestation=attestation,
        gate=AccessControlGate(StaticVerifier()),
        policy=policy,
    )

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {VALID_TOKEN}"}


@pytest.fixture
def participant_payload() -> dict:
    return {
        "name": "Amina Njoroge",
        "email": "Amina@Example.org",
        "role": "speaker",
    }
