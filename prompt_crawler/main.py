"""
main.py — Dependency Wiring (Composition Root)
------------------------------------------------
Wires the pieces together and runs one crawl job. No business logic here:
  1. Reads settings from environment variables
  2. Creates the concrete implementation of each interface
  3. Injects them into the classes that need them
  4. Calls the top-level use case (CrawlApplicationService.execute)
  5. Reports the result

Dependency graph:
                          main.py  (wires everything)
                             │
                  CrawlApplicationService ──── PostgresPromptStorage
                             │                    │
          ┌──────────────────┼──────────────┐     │
          ▼                  ▼              ▼     ▼
  CrawlerOrchestrator   OpenAIExtractor   RegistryDeduplicator
          │
    ┌─────┴──────┐
    ▼            ▼
RedditConnector  GitHubConnector

A fresh graph is built for every job, so the Reddit token cache and the
HTTP client never leak from one run into the next.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import httpx
import psycopg2

from prompt_crawler.application.crawl_service import CrawlApplicationService
from prompt_crawler.application.deduplicator import RegistryDeduplicator
from prompt_crawler.application.orchestrator import CrawlerOrchestrator
from prompt_crawler.domain.entities import JOB_ALL, JOB_TYPES, STATUS_COMPLETED, JobResult
from prompt_crawler.dump_prompts import OUTPUT_FILE, export_pending_prompts
from prompt_crawler.infrastructure.github_client import GitHubConnector
from prompt_crawler.infrastructure.openai_extractor import OpenAIExtractor
from prompt_crawler.infrastructure.postgres_storage import PostgresPromptStorage
from prompt_crawler.infrastructure.reddit_client import RedditConnector
from prompt_crawler.infrastructure.schema import ensure_schema
from prompt_crawler.settings import Settings, SettingsError

log = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def build_and_run(settings: Settings, job_type: str = JOB_ALL) -> JobResult:
    """
    Wires all dependencies together and executes one crawl job.

    This is the only place that knows which concrete class implements
    each interface.
    """
    conn   = psycopg2.connect(settings.database_url)
    client = httpx.AsyncClient()

    try:
        storage = PostgresPromptStorage(conn=conn)

        reddit = RedditConnector(
            client_id     = settings.reddit_client_id,
            client_secret = settings.reddit_client_secret,
            client        = client,
        )
        github = GitHubConnector(
            token  = settings.github_token,
            client = client,
        )
        extractor = OpenAIExtractor(
            api_key  = settings.openai_api_key,
            client   = client,
            model    = settings.openai_model,
            base_url = settings.openai_base_url,
        )

        service = CrawlApplicationService(
            orchestrator = CrawlerOrchestrator(connectors=[reddit, github]),
            storage      = storage,
            deduplicator = RegistryDeduplicator(storage),
            extractor    = extractor,
        )
        return await service.execute(job_type)

    finally:
        # Always clean up connections, even if an exception occurred
        await client.aclose()
        conn.close()


def _cmd_crawl(settings: Settings, args: argparse.Namespace) -> int:
    result = asyncio.run(build_and_run(settings, args.job_type))
    if result.status == STATUS_COMPLETED:
        log.info(
            "Completed | job %s | found %d | new %d | prompts %d | %.0fs",
            result.job_id,
            result.items_found,
            result.items_new,
            result.prompts_extracted,
            result.elapsed_secs,
        )
        return 0
    log.error("Failed | job %s | error: %s", result.job_id, result.error_message)
    return 1


def _cmd_init_db(settings: Settings, args: argparse.Namespace) -> int:
    conn = psycopg2.connect(settings.database_url)
    try:
        ensure_schema(conn)
    finally:
        conn.close()
    return 0


def _cmd_export(settings: Settings, args: argparse.Namespace) -> int:
    conn = psycopg2.connect(settings.database_url)
    try:
        export_pending_prompts(conn, args.output, args.limit)
    finally:
        conn.close()
    return 0


def _cmd_serve(settings: Settings, args: argparse.Namespace) -> int:
    from prompt_crawler.web import create_app

    create_app(settings).run(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prompt-crawler",
        description="Crawl Reddit and GitHub for AI prompts and store the good ones",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    crawl = sub.add_parser("crawl", help="Run one crawl job")
    crawl.add_argument(
        "--job-type",
        choices = JOB_TYPES,
        default = JOB_ALL,
        help    = f"Which sources to crawl (default: {JOB_ALL})",
    )
    crawl.set_defaults(handler=_cmd_crawl)

    init_db = sub.add_parser("init-db", help="Create the crawler tables")
    init_db.set_defaults(handler=_cmd_init_db)

    export = sub.add_parser("export", help="Dump prompts awaiting review to CSV")
    export.add_argument("--output", default=OUTPUT_FILE)
    export.add_argument("--limit", type=int, default=500)
    export.set_defaults(handler=_cmd_export)

    serve = sub.add_parser("serve", help="Serve the HTTP trigger endpoint")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    serve.set_defaults(handler=_cmd_serve)

    return parser


def cli(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except SettingsError as exc:
        configure_logging()
        log.error("%s", exc)
        return 1

    configure_logging(settings.log_level)
    return args.handler(settings, args)


if __name__ == "__main__":
    sys.exit(cli())
