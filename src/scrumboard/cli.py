"""ScrumBoard CLI entry point"""

import argparse
import sys

import uvicorn

from .config import Settings, get_settings
from .errors import ScrumBoardError
from .logging import setup_logging
from .models import UserRole
from .storage import build_services
from .storage.migrations import initialize_database


def init_database(settings: Settings) -> None:
    """Create or upgrade the database schema"""
    initialize_database(settings.database)
    print(f"Database ready at {settings.database.url}")


def create_user(settings: Settings, username: str, email: str, full_name=None, admin: bool = False) -> int:
    """Create a user directly, bypassing the API (used to bootstrap the first admin)"""
    initialize_database(settings.database)
    services = build_services(settings.database)
    try:
        user = services.users.create_user(
            username=username,
            email=email,
            full_name=full_name,
            role=UserRole.ADMIN if admin else UserRole.DEVELOPER,
        )
    except ScrumBoardError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        services.dispose()

    print(f"Created {user.role.value} '{user.username}' with id {user.id}")
    print(f"Send 'X-User-Id: {user.id}' with API requests to act as this user")
    return 0


def serve(settings: Settings, host: str, port: int, reload: bool = False) -> None:
    """Start the scrumboard server"""
    uvicorn.run(
        "scrumboard.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.logging.level.lower(),
    )


def main(argv=None) -> int:
    """Main CLI entry point"""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="ScrumBoard - Scrum and Kanban project tracker")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Init command
    subparsers.add_parser("init", help="Create or upgrade the database")

    # Create-user command
    user_parser = subparsers.add_parser("create-user", help="Create a user")
    user_parser.add_argument("--username", required=True, help="Unique user name")
    user_parser.add_argument("--email", required=True, help="Unique email address")
    user_parser.add_argument("--full-name", default=None, help="Display name")
    user_parser.add_argument("--admin", action="store_true", help="Grant the global admin role")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start scrumboard server")
    serve_parser.add_argument("--host", default=settings.web.host, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=settings.web.port, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args(argv)

    if args.command in ("init", "create-user"):
        setup_logging(settings.logging)

    if args.command == "init":
        init_database(settings)
    elif args.command == "create-user":
        return create_user(settings, args.username, args.email, args.full_name, args.admin)
    elif args.command == "serve":
        serve(settings, args.host, args.port, args.reload)
    else:
        parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
