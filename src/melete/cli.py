"""
CLI entry point for Melete maintenance commands.

- consolidate: sweep a session's working memory into long-term memory
- state: print the decayed view of one owner's session
"""

import asyncio
import json
import sys
from typing import Optional

import click
from loguru import logger

from melete.config.settings import Settings
from melete.service import WorkingMemoryService
from melete.storage import (
    InMemoryLongTermStore,
    InMemorySessionRepository,
    MCPLongTermStore,
    SqliteSessionRepository,
)
from melete.storage.base import SessionRepository
from melete.utils.exceptions import ConfigurationError, MeleteError
from melete.utils.logging import configure_logging


def build_repository(settings: Settings) -> SessionRepository:
    """Session repository for the configured backend."""
    backend = settings.storage.backend
    if backend == "memory":
        logger.warning("Using in-memory repository; nothing will be persisted")
        return InMemorySessionRepository()
    if backend == "sqlite":
        return SqliteSessionRepository(settings.storage.sqlite_path)
    raise ConfigurationError(f"Unknown storage backend: {backend}")


def _close(repository: SessionRepository) -> None:
    close = getattr(repository, "close", None)
    if close is not None:
        close()


async def _consolidate(settings: Settings, session: str, owner: Optional[str], dry_run: bool) -> dict:
    repository = build_repository(settings)
    try:
        return await _run_consolidation(repository, settings, session, owner, dry_run)
    finally:
        _close(repository)


async def _run_consolidation(
    repository: SessionRepository, settings: Settings, session: str, owner: Optional[str], dry_run: bool
) -> dict:
    if dry_run:
        long_term = InMemoryLongTermStore()
        service = WorkingMemoryService(repository, long_term, settings=settings)
        report = await service.consolidate_session(session, owner=owner)
        result = report.to_dict()
        result["records"] = [r.to_dict() for r in long_term.records]
        return result

    client = MCPLongTermStore(
        server_command=settings.long_term.server_command,
        server_args=settings.long_term.server_args,
        tool_name=settings.long_term.tool_name,
    )
    async with client.connect() as connected:
        service = WorkingMemoryService(repository, connected, settings=settings)
        report = await service.consolidate_session(session, owner=owner)
    return report.to_dict()


async def _state(settings: Settings, session: str, owner: str, graph: bool) -> Optional[dict]:
    repository = build_repository(settings)
    try:
        service = WorkingMemoryService(repository, InMemoryLongTermStore(), settings=settings)
        view = await service.get_state(owner, session, include_associations=graph)
    finally:
        _close(repository)
    return view.to_dict() if view else None


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """Melete - session working memory maintenance."""
    settings = Settings()
    if debug:
        settings.logging.level = "DEBUG"
    configure_logging(settings.logging)
    ctx.obj = settings


@main.command()
@click.argument("session")
@click.option("--owner", default=None, help="Only sweep this owner's store")
@click.option("--dry-run", is_flag=True, help="Collect records locally instead of sending them")
@click.pass_obj
def consolidate(settings: Settings, session: str, owner: Optional[str], dry_run: bool) -> None:
    """Consolidate a session's working memory into long-term memory."""
    try:
        result = asyncio.run(_consolidate(settings, session, owner, dry_run))
    except MeleteError as e:
        logger.error(f"Consolidation failed: {e}")
        sys.exit(1)
    click.echo(json.dumps(result, indent=2))


@main.command()
@click.argument("session")
@click.option("--owner", required=True, help="Owner of the working memory")
@click.option("--graph", is_flag=True, help="Include the association graph")
@click.pass_obj
def state(settings: Settings, session: str, owner: str, graph: bool) -> None:
    """Print the current (decayed) working memory of a session."""
    try:
        result = asyncio.run(_state(settings, session, owner, graph))
    except MeleteError as e:
        logger.error(f"Could not read working memory: {e}")
        sys.exit(1)

    if result is None:
        click.echo(f"No working memory for session {session}", err=True)
        sys.exit(1)
    click.echo(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
