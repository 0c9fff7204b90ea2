"""
Test configuration for pytest
"""
import os
from datetime import datetime
from typing import Generator

import pytest

# Test environment variables; must be set before the package reads its settings
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SMTP_HOST"] = ""

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from nectardesk_api.core.database import Base, SessionLocal, get_db, get_db_engine  # noqa: E402
from nectardesk_api.core.security import hash_password, create_access_token  # noqa: E402
from nectardesk_api.core.rbac import Principal, TenantContext  # noqa: E402
from nectardesk_api.models import Organization, User, Agent, Transcript  # noqa: E402
from nectardesk_api.main import app  # noqa: E402

DEFAULT_PASSWORD = "password123"


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine with fresh tables for each test"""
    engine = get_db_engine()
    SessionLocal.configure(bind=engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(engine) -> Generator[TestClient, None, None]:
    """HTTP client; the lifespan (and so the scheduler) is not started"""
    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
    if hasattr(app.state, "scheduler"):
        del app.state.scheduler


# Factories

@pytest.fixture
def make_organization(db):
    counter = {"n": 0}

    def factory(name: str = None, is_master: bool = False, max_users: int = 10, **kwargs) -> Organization:
        counter["n"] += 1
        n = counter["n"]
        organization = Organization(
            name=name or f"Organization {n}",
            code=kwargs.pop("code", f"ORG{n}"),
            contact_email=kwargs.pop("contact_email", f"contact{n}@example.com"),
            is_master=is_master,
            is_active=kwargs.pop("is_active", True),
            max_users=max_users,
            **kwargs
        )
        db.add(organization)
        db.commit()
        db.refresh(organization)
        return organization

    return factory


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def factory(
        organization: Organization = None,
        role: str = "admin",
        is_master_admin: bool = False,
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            first_name="Test",
            last_name=f"User{counter['n']}",
            organization_id=organization.id if organization else None,
            role=role,
            is_master_admin=is_master_admin,
            is_active=is_active
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


@pytest.fixture
def make_agent(db):
    counter = {"n": 0}

    def factory(organization: Organization, status: str = "active", **kwargs) -> Agent:
        counter["n"] += 1
        n = counter["n"]
        agent = Agent(
            organization_id=organization.id,
            external_id=kwargs.pop("external_id", f"AG-{n:03d}"),
            first_name=kwargs.pop("first_name", "Agent"),
            last_name=kwargs.pop("last_name", f"Number{n}"),
            email=kwargs.pop("email", f"agent{n}@example.com"),
            status=status,
            historical=[],
            **kwargs
        )
        db.add(agent)
        db.commit()
        db.refresh(agent)
        return agent

    return factory


def build_analysis(scorecard=None, strengths=None, improvements=None) -> dict:
    return {
        "call_summary": {"brief_summary": "Customer asked about a refund"},
        "agent_performance": {
            "strengths": strengths or [],
            "areas_for_improvement": improvements or [],
        },
        "improvement_suggestions": [],
        "scorecard": scorecard,
    }


@pytest.fixture
def make_transcript(db):
    def factory(
        organization: Organization,
        agent: Agent = None,
        scorecard: dict = None,
        created_at: datetime = None,
        duration: float = None,
        talk_time: float = None,
        waiting_time: float = None,
        strengths=None,
        improvements=None,
        analysis: dict = None
    ) -> Transcript:
        if analysis is None and (scorecard is not None or strengths or improvements):
            analysis = build_analysis(scorecard, strengths, improvements)
        transcript = Transcript(
            organization_id=organization.id,
            agent_id=agent.id if agent else None,
            raw_transcript="Agent: Hello, how can I help?\nCustomer: I need a refund.",
            analysis=analysis,
            duration=duration,
            talk_time=talk_time,
            waiting_time=waiting_time,
            created_at=created_at or datetime.utcnow()
        )
        db.add(transcript)
        db.commit()
        db.refresh(transcript)
        return transcript

    return factory


# Auth helpers

def token_for(user: User) -> str:
    return create_access_token(
        user_id=str(user.id),
        email=user.email,
        organization_id=str(user.organization_id) if user.organization_id else None,
        role=user.role,
        is_master_admin=user.is_master_admin
    )


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


def context_for(user: User, is_master_org: bool = False) -> TenantContext:
    return TenantContext(
        principal=Principal(
            user_id=user.id,
            organization_id=user.organization_id,
            role=user.role,
            is_master_admin=user.is_master_admin,
            email=user.email
        ),
        is_master_org=is_master_org
    )


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def tenant_context():
    return context_for
