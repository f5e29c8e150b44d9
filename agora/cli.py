"""
Command-line interface for the Agora feedback board.

Usage:
    agora serve                             # Run the API server
    agora init-db                           # Create tables
    agora health                            # Check database connectivity
    agora create-user NAME USERNAME EMAIL   # Provision a user, print its id
    agora create-category NAME              # Add a category, print its id
    agora issue-token USER_ID               # Mint a session token for local testing
"""

import asyncio
import sys
from datetime import timedelta

import click

from agora.config.settings import get_settings
from agora.observability.logging import get_logger, setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Agora - feedback board backend."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command("init-db")
def init_db() -> None:
    """Create all tables (idempotent)."""
    from agora.comments.repository import CommentRepository
    from agora.feedback.repository import CategoryRepository, FeedbackRepository
    from agora.storage.database import Database
    from agora.users.repository import UserRepository

    async def run():
        async with Database() as db:
            # Referenced tables first
            for repo in (
                UserRepository(db),
                CategoryRepository(db),
                FeedbackRepository(db),
                CommentRepository(db),
            ):
                await repo.create_table()

        click.echo("Database initialized successfully")

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check health of the database."""
    logger = get_logger()

    async def check() -> bool:
        from agora.storage.database import Database

        try:
            async with Database() as db:
                return await db.health_check()
        except Exception as e:
            logger.error("Postgres health check failed", error=str(e))
            return False

    healthy = asyncio.run(check())

    click.echo("\nHealth Check Results:")
    click.echo("-" * 40)
    icon = "✓" if healthy else "✗"
    color = "green" if healthy else "red"
    click.echo(click.style(f"  {icon} postgres: {healthy}", fg=color))
    click.echo("-" * 40)

    if not healthy:
        click.echo(click.style("Some services are unhealthy", fg="red"))
        sys.exit(1)
    click.echo(click.style("All services healthy", fg="green"))


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "agora.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@main.command("create-user")
@click.argument("name")
@click.argument("username")
@click.argument("email")
@click.option(
    "--role",
    type=click.Choice(["USER", "MODERATOR", "ADMIN"], case_sensitive=False),
    default=None,
    help="Role to assign (new users default to USER)",
)
@click.option("--avatar-url", default=None, help="Avatar image URL")
def create_user(name: str, username: str, email: str, role: str | None, avatar_url: str | None) -> None:
    """Create the user USERNAME, or refresh its profile, and print its public id."""
    from agora.errors import ValidationError
    from agora.identifiers import IdentifierConfig, IdGenerator, encode
    from agora.storage.database import Database
    from agora.users.service import UserService

    async def run():
        async with Database() as db:
            service = UserService(db, IdGenerator(IdentifierConfig()))
            return await service.create_or_update(
                name, username, email, role=role, avatar_url=avatar_url
            )

    try:
        user, created = asyncio.run(run())
    except ValidationError as e:
        for error in e.errors:
            click.echo(click.style(f"{error.field}: {error.message}", fg="red"), err=True)
        sys.exit(1)

    verb = "Created" if created else "Updated"
    click.echo(f"{verb} user {user.username} ({user.role.value})", err=True)
    click.echo(encode(user.id))


@main.command("create-category")
@click.argument("name")
def create_category(name: str) -> None:
    """Add a feedback category and print its public id."""
    from agora.feedback.repository import CategoryRepository
    from agora.feedback.schemas import Category
    from agora.identifiers import IdentifierConfig, IdGenerator, encode
    from agora.storage.database import Database, unit_of_work

    try:
        category = Category(id=IdGenerator(IdentifierConfig()).generate(), name=name)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="NAME") from None

    async def run():
        async with Database() as db:
            async with unit_of_work(db) as conn:
                return await CategoryRepository(conn).create(category)

    created = asyncio.run(run())
    click.echo(encode(created.id))


@main.command("issue-token")
@click.argument("user_id")
@click.option("--ttl-minutes", default=None, type=int, help="Override the configured token lifetime")
def issue_token(user_id: str, ttl_minutes: int | None) -> None:
    """Mint a session token for USER_ID (13-character public id)."""
    from agora.api.auth import issue_session_token
    from agora.errors import InvalidIdentifierError
    from agora.identifiers import decode

    try:
        decode(user_id)
    except InvalidIdentifierError as e:
        raise click.BadParameter(str(e), param_hint="USER_ID") from None

    settings = get_settings()
    if not settings.sessions_configured:
        click.echo(click.style("SESSION_SECRET is not set", fg="red"), err=True)
        sys.exit(1)

    expires = timedelta(minutes=ttl_minutes) if ttl_minutes else None
    click.echo(issue_session_token(user_id.upper(), settings, expires))


if __name__ == "__main__":
    main()
