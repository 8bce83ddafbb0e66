"""Test configuration and fixtures"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest

from scrumboard.config import DatabaseSettings, LoggingSettings, Settings
from scrumboard.models import Base, UserRole
from scrumboard.storage import build_services


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation"""
    temp_dir = tempfile.mkdtemp()
    original_cwd = os.getcwd()
    os.chdir(temp_dir)

    yield Path(temp_dir)

    os.chdir(original_cwd)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def db_settings(temp_dir):
    """Settings pointing at a fresh SQLite file inside the temp dir"""
    return DatabaseSettings(url=f"sqlite:///{temp_dir}/.scrumboard/database.db")


@pytest.fixture
def services(db_settings):
    """Services over a schema built straight from the ORM metadata"""
    Path(db_settings.url.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)
    services = build_services(db_settings)
    Base.metadata.create_all(bind=services.engine)

    yield services

    services.dispose()


@pytest.fixture
def app_settings(temp_dir):
    """Application settings for API tests; migrations run on startup"""
    return Settings(
        database=DatabaseSettings(url=f"sqlite:///{temp_dir}/.scrumboard/database.db"),
        logging=LoggingSettings(level="WARNING", format="console"),
    )


@pytest.fixture
def admin(services):
    return services.users.create_user("admin", "admin@example.com", "Ada Admin", role=UserRole.ADMIN)


@pytest.fixture
def alice(services):
    return services.users.create_user("alice", "alice@example.com", "Alice Developer")


@pytest.fixture
def bob(services):
    return services.users.create_user("bob", "bob@example.com")


@pytest.fixture
def project(services, alice):
    """Project owned by alice, with the three default statuses"""
    return services.projects.create_project(alice, name="Web Shop", key="web")


@pytest.fixture
def statuses(services, alice, project):
    """Default statuses keyed by category value: todo, inprogress, done"""
    return {s.category.value: s for s in services.projects.list_statuses(alice, project.id)}


@pytest.fixture
def make_issue(services, alice, project, statuses):
    """Factory creating issues in ``project`` as alice"""
    def _make_issue(title="Issue", status="todo", **kwargs):
        return services.issues.create_issue(
            alice,
            project_id=project.id,
            title=title,
            status_id=statuses[status].id,
            **kwargs,
        )
    return _make_issue
