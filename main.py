"""Command-line entry point: serve the chat API, add tenants, ingest pages."""

from __future__ import annotations

import argparse
import sqlite3
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import requests
from openai import OpenAIError

from praxischat.config import config
from praxischat.embeddings import EmbeddingService
from praxischat.ingestion import KnowledgeIngestor, PageExtractor, TextChunker
from praxischat.knowledge_store import get_knowledge_store
from praxischat.models import TenantVariables
from praxischat.tenants import TenantNotFoundError, TenantRepository

if TYPE_CHECKING:
    from collections.abc import Sequence
    from logging import Logger

PROJECT_ROOT = Path(__file__).resolve().parent
DEFAULT_APP = "praxischat.api:app"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Build the CLI parser and read command-line arguments."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        description="PraxisChat backend administration.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the chat API with uvicorn.")
    serve.add_argument(
        "--app",
        default=DEFAULT_APP,
        help=f"ASGI application import path (default: {DEFAULT_APP}).",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=config.SERVER_PORT,
        help=f"Port for the API server (default: {config.SERVER_PORT}).",
    )
    serve.add_argument(
        "--address",
        default=config.SERVER_HOST,
        help=f"Bind address for the API server (default: {config.SERVER_HOST}).",
    )
    serve.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change.",
    )

    ingest = subparsers.add_parser(
        "ingest",
        help="Add the text of one or more pages to a tenant's knowledge base.",
    )
    ingest.add_argument("slug", help="Tenant slug.")
    ingest.add_argument("urls", nargs="+", help="Page URLs to ingest.")

    add_tenant = subparsers.add_parser("add-tenant", help="Register a new tenant.")
    add_tenant.add_argument("slug", help="Tenant slug used in embed URLs.")
    add_tenant.add_argument("--name", required=True, help="Practice display name.")
    add_tenant.add_argument("--location", required=True, help="Practice location.")
    add_tenant.add_argument("--phone", required=True, help="Contact phone number.")
    add_tenant.add_argument(
        "--response-time",
        default="",
        help="Average response time shown to patients.",
    )

    return parser.parse_args(argv)


def build_uvicorn_command(
    app_path: str,
    *,
    port: int,
    address: str,
    reload: bool,
) -> list[str]:
    """Construct the uvicorn CLI invocation."""  # noqa: DOC201
    command = [
        sys.executable,
        "-m",
        "uvicorn",
        app_path,
        "--host",
        address,
        "--port",
        str(port),
        "--log-level",
        config.LOG_LEVEL.lower(),
    ]
    if reload:
        command.append("--reload")
    return command


def run_server(command: Sequence[str], logger: Logger) -> int:
    """Execute the configured uvicorn command and return its exit code."""  # noqa: DOC201
    try:
        result = subprocess.run(
            command,
            check=False,
            cwd=PROJECT_ROOT,
        )
    except KeyboardInterrupt:
        logger.info("PraxisChat stopped by user")
        return 0
    except OSError:
        logger.exception("Unable to launch uvicorn")
        return 1
    return result.returncode


def serve(args: argparse.Namespace, logger: Logger) -> int:
    """Validate configuration and launch the API server."""  # noqa: DOC201
    try:
        config.validate()
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    logger.info("Starting PraxisChat API at http://%s:%s", args.address, args.port)
    command = build_uvicorn_command(
        args.app,
        port=args.port,
        address=args.address,
        reload=args.reload,
    )
    return_code = run_server(command, logger)
    if return_code != 0:
        logger.error("uvicorn exited with status %s", return_code)
    return return_code


def ingest(args: argparse.Namespace, logger: Logger) -> int:
    """Ingest every URL for the tenant; stop at the first failure."""  # noqa: DOC201
    try:
        config.validate()
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    ingestor = KnowledgeIngestor(
        tenants=TenantRepository(),
        extractor=PageExtractor(),
        chunker=TextChunker(),
        embedding_service=EmbeddingService(),
        knowledge_store=get_knowledge_store(),
    )

    for url in args.urls:
        try:
            report = ingestor.ingest(args.slug, url)
        except TenantNotFoundError:
            logger.exception("Unknown tenant %s", args.slug)
            return 1
        except (
            requests.RequestException,
            OpenAIError,
            sqlite3.Error,
            OSError,
            RuntimeError,
            ValueError,
        ):
            logger.exception("Ingestion of %s failed", url)
            return 1

        if report.skipped:
            logger.warning("Nothing stored for %s", url)
        else:
            logger.info("Stored %d chunks for %s", report.chunk_count, url)
    return 0


def add_tenant(args: argparse.Namespace, logger: Logger) -> int:
    """Create a tenant with its display variables."""  # noqa: DOC201
    variables = TenantVariables(
        display_name=args.name,
        location=args.location,
        contact_phone=args.phone,
        average_response_time=args.response_time,
    )
    try:
        tenant = TenantRepository().create_tenant(args.slug, variables)
    except ValueError:
        logger.exception("Could not create tenant %s", args.slug)
        return 1

    logger.info("Tenant %s created with id %s", tenant.slug, tenant.id)
    return 0


COMMANDS = {
    "serve": serve,
    "ingest": ingest,
    "add-tenant": add_tenant,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Dispatch the selected subcommand."""  # noqa: DOC201
    args = parse_args(argv)

    config.setup_logging()
    logger = config.get_logger(__name__)

    return COMMANDS[args.command](args, logger)


if __name__ == "__main__":
    sys.exit(main())
