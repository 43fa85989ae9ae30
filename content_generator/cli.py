"""Command-line trigger for content generation runs and log administration.

Provides the run, run-json, import-csv, logs and clear-logs commands.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Protocol

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from content_generator.domain.errors import ContentGeneratorError, PayloadParseError, RateLimitExceededError
from content_generator.domain.models import RunResult, RunStatus
from content_generator.infra import json
from content_generator.infra.config import Settings, get_settings
from content_generator.infra.logging_config import setup_logging
from content_generator.port.generation_log_repository import GenerationLogRepositoryPort
from content_generator.port.rate_limiter import RateLimiterPort
from content_generator.usecase.csv_import import CsvImporter
from content_generator.usecase.generate_content import GenerateContentUsecase
from content_generator.usecase.load_source import ContentSource, DirectorySource, SubmittedSource, parse_document

logger = structlog.get_logger(__name__)

RATE_LIMIT_ACTION = "content_generation"


class Container(Protocol):
    """The slice of ServiceContainer the commands use."""

    settings: Settings

    @property
    def generate_content(self) -> GenerateContentUsecase: ...

    @property
    def rate_limiter(self) -> RateLimiterPort: ...

    @property
    def log_repository(self) -> GenerationLogRepositoryPort: ...

    @property
    def csv_importer(self) -> CsvImporter: ...

    async def aclose(self) -> None: ...


def load_json_documents(path: Path) -> list[Any]:
    """Read a JSON file holding one document or an array of documents."""
    document = parse_document(path.read_bytes(), path.name)
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        return [document]
    raise PayloadParseError(f"{path.name}: expected a JSON object or array")


async def run_generation(
    container: Container,
    source: ContentSource,
    principal_id: str | None,
    extra: dict[str, Any] | None = None,
) -> int:
    """Enforce the rate limit, run the pipeline and print the result."""
    principal_id = principal_id or container.settings.pipeline.author_id
    if principal_id:
        decision = await container.rate_limiter.check(principal_id, RATE_LIMIT_ACTION)
        if not decision.allowed:
            raise RateLimitExceededError(
                f"Rate limit exceeded: {decision.current_count} runs in the last hour (max {decision.limit})"
            )

    result: RunResult = await container.generate_content.execute(source, principal_id)
    print(json.dumps_pretty({**result.to_dict(), **(extra or {})}))
    return 0 if result.status is RunStatus.SUCCESS else 1


async def list_logs(container: Container, limit: int) -> int:
    logs = await container.log_repository.list_recent(limit)
    print(json.dumps_pretty([log.to_dict() for log in logs]))
    return 0


async def clear_logs(container: Container) -> int:
    deleted = await container.log_repository.clear()
    logger.info("Generation logs cleared", deleted=deleted)
    print(json.dumps_pretty({"deleted": deleted}))
    return 0


async def _dispatch(args: argparse.Namespace, container: Container) -> int:
    try:
        if args.command == "run":
            directory = args.directory or Path(container.settings.pipeline.content_directory)
            return await run_generation(container, DirectorySource(directory), args.principal)
        if args.command == "run-json":
            documents = load_json_documents(args.file)
            return await run_generation(container, SubmittedSource(documents, args.file.name), args.principal)
        if args.command == "import-csv":
            converted = container.csv_importer.convert(args.file.read_text(encoding="utf-8"))
            for warning in converted.warnings:
                logger.warning("CSV import warning", warning=warning)
            return await run_generation(
                container,
                SubmittedSource(converted.documents, args.file.name),
                args.principal,
                extra={"importWarnings": converted.warnings},
            )
        if args.command == "logs":
            return await list_logs(container, args.limit)
        if args.command == "clear-logs":
            return await clear_logs(container)
        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await container.aclose()


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="content-generator",
        description="Validate content documents and materialize them into the content store",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Process every file in the content directory")
    run_parser.add_argument("--directory", type=Path, default=None, help="Content directory (default: from settings)")
    run_parser.add_argument("--principal", default=None, help="Principal id (default: CONTENT_GEN_AUTHOR_ID)")

    json_parser = subparsers.add_parser("run-json", help="Process documents from a JSON file")
    json_parser.add_argument("file", type=Path, help="JSON object or array of content documents")
    json_parser.add_argument("--principal", default=None, help="Principal id (default: CONTENT_GEN_AUTHOR_ID)")

    csv_parser = subparsers.add_parser("import-csv", help="Convert a CSV export and process it")
    csv_parser.add_argument("file", type=Path, help="CSV file with a header row")
    csv_parser.add_argument("--principal", default=None, help="Principal id (default: CONTENT_GEN_AUTHOR_ID)")

    logs_parser = subparsers.add_parser("logs", help="List recent generation logs, newest first")
    logs_parser.add_argument("--limit", type=int, default=50, help="Number of logs (default: 50)")

    subparsers.add_parser("clear-logs", help="Delete every generation log")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging()
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    from content_generator.container import ServiceContainer

    try:
        return asyncio.run(_dispatch(args, ServiceContainer(settings)))
    except ContentGeneratorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        print(f"Database error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"I/O error: {e}", file=sys.stderr)
        return 1
