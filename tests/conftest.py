from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from portfolio_api.models import CommandDefinition, Contact, Project
from portfolio_api.store import create_database
from portfolio_api.terminal import TerminalService

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def sample_commands():
    return [
        CommandDefinition(name="help", description="Show available commands", kind="dynamic", category="system", order=1),
        CommandDefinition(name="clear", description="Clear the terminal screen", kind="dynamic", category="system", order=2),
        CommandDefinition(name="about", description="About me", response_text="Hi, I'm Rey.", category="about", order=1),
        CommandDefinition(name="skills", description="List my technical skills", kind="dynamic", category="about", order=2),
        CommandDefinition(name="whoami", kind="alias", alias_target="about", category="about", order=3),
        CommandDefinition(name="projects", description="List my projects", kind="dynamic", category="project", order=1),
        CommandDefinition(name="me", kind="alias", alias_target="whoami", category="fun", order=1),
        CommandDefinition(name="broken", kind="alias", alias_target="nowhere", category="fun", order=2),
        CommandDefinition(name="secret", response_text="hidden", is_active=False, category="fun", order=3),
        CommandDefinition(name="ask", kind="ai", category="fun", order=4),
        CommandDefinition(name="empty", category="general", order=1),
    ]


def sample_projects():
    return [
        Project(
            title="Chatbot", description="LLM chatbot", short_description="A helpful chatbot",
            technologies=["Python", "FastAPI"], project_type="AI",
            github_url="https://github.com/rey/chatbot", featured=True, order=2, slug="chatbot",
        ),
        Project(
            title="Shop", description="Online shop", short_description="E-commerce storefront",
            technologies=["React", "Node.js"], project_type="Web",
            demo_url="https://shop.example.com", order=1, slug="shop",
        ),
        Project(
            title="Runner", description="Running app", short_description="Track your runs",
            technologies=["Kotlin"], project_type="Mobile", featured=True, order=3, slug="runner",
        ),
        Project(
            title="Legacy", description="Old site", short_description="Retired project",
            technologies=["PHP"], project_type="Web", order=0, slug="legacy", active=False,
        ),
    ]


def sample_contacts():
    return [
        Contact(
            name=f"Person {i}", email=f"person{i}@example.com", subject="Hello",
            message="Nice site", status=status, created_at=BASE_TIME + timedelta(days=i),
        )
        for i, status in enumerate(["new", "read", "new"])
    ]


@pytest.fixture
def db():
    return create_database(
        commands=sample_commands(),
        projects=sample_projects(),
        contacts=sample_contacts(),
    )


@pytest.fixture
def terminal(db):
    return TerminalService(db=db)


@pytest.fixture
def api_key():
    return "test-api-key"


@pytest.fixture
def admin_headers(api_key):
    return {"X-API-Key": api_key}


@pytest.fixture
def client(db, api_key, monkeypatch):
    from portfolio_api import main

    monkeypatch.setattr("portfolio_api.config.settings.api_key", api_key)
    monkeypatch.setattr(main, "DB", db)
    monkeypatch.setattr(main, "TERMINAL", TerminalService(db=db))
    return TestClient(main.app)
