"""Tests for the command line entry point"""

import pytest

from scrumboard import cli
from scrumboard.models import UserRole
from scrumboard.storage import build_services
from scrumboard.storage.migrations import needs_migration


@pytest.fixture
def cli_settings(app_settings, monkeypatch):
    monkeypatch.setattr(cli, "get_settings", lambda: app_settings)
    return app_settings


def test_init_creates_database(cli_settings, capsys):
    assert cli.main(["init"]) == 0
    assert needs_migration(cli_settings.database) is False
    assert "Database ready" in capsys.readouterr().out


def test_create_admin(cli_settings, capsys):
    assert cli.main(["create-user", "--username", "root", "--email", "root@example.com", "--admin"]) == 0
    assert "X-User-Id" in capsys.readouterr().out

    services = build_services(cli_settings.database)
    try:
        [user] = services.users.list_users()
        assert user.username == "root"
        assert user.role == UserRole.ADMIN
    finally:
        services.dispose()


def test_create_duplicate_user_fails(cli_settings, capsys):
    args = ["create-user", "--username", "root", "--email", "root@example.com"]
    assert cli.main(args) == 0
    assert cli.main(args) == 1
    assert "already taken" in capsys.readouterr().err
