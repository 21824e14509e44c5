from __future__ import annotations
import json
import logging
from typing import Any

import psycopg2

from prompt_crawler.domain.entities import (
    STATUS_RUNNING,
    CandidatePrompt,
    PromptAnalysis,
    RawItem,
)
from prompt_crawler.domain.errors import StorageError
from prompt_crawler.domain.interfaces import IPromptStorage

log = logging.getLogger(__name__)


class PostgresPromptStorage(IPromptStorage):
    """
    Concrete implementation of IPromptStorage using PostgreSQL.

    Receives an already-connected psycopg2 connection (injected). Every
    write is its own transaction: commit on success, rollback on failure,
    so one bad row never poisons the rows after it. psycopg2 errors are
    re-raised as StorageError.
    """

    def __init__(self, conn) -> None:
        self._conn = conn

    def _execute(self, sql: str, params: tuple = (), fetch: str | None = None) -> Any:
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, params)
                if fetch == "one":
                    rows = cur.fetchone()
                elif fetch == "all":
                    rows = cur.fetchall()
                else:
                    rows = None
            self._conn.commit()
            return rows
        except psycopg2.Error as exc:
            self._conn.rollback()
            raise StorageError(str(exc).strip()) from exc

    def create_job(self, job_type: str) -> str:
        """
        Create a crawl_jobs row when the job starts.
        Returns the new job ID so it can be finalized later.
        """
        row = self._execute(
            """
            INSERT INTO crawl_jobs (job_type, status, started_at)
            VALUES (%s, %s, NOW())
            RETURNING id
            """,
            (job_type, STATUS_RUNNING),
            fetch="one",
        )
        job_id = str(row[0])
        log.debug("Created crawl job %s", job_id)
        return job_id

    def finish_job(self, job_id: str, status: str, items_found: int, items_new: int, prompts_extracted: int, error: str | None = None) -> None:
        """
        Update the crawl_jobs row with final status and counters.
        Only a 'running' job is touched, so a finished job stays finished.
        """
        self._execute(
            """
            UPDATE crawl_jobs
            SET completed_at      = NOW(),
                status            = %s,
                items_found       = %s,
                items_new         = %s,
                prompts_extracted = %s,
                error_message     = %s
            WHERE id = %s AND status = %s
            """,
            (status, items_found, items_new, prompts_extracted, error, job_id, STATUS_RUNNING),
        )
        log.debug("Finished crawl job %s | status=%s", job_id, status)

    def fetch_config_rows(self) -> list[tuple[str, Any]]:
        rows = self._execute(
            "SELECT config_key, config_value FROM crawl_config",
            fetch="all",
        )
        return [(key, value) for key, value in rows or []]

    def source_exists(self, source_type: str, source_id: str) -> bool:
        row = self._execute(
            """
            SELECT 1 FROM prompt_sources
            WHERE source_type = %s AND source_id = %s
            LIMIT 1
            """,
            (source_type, source_id),
            fetch="one",
        )
        return row is not None

    def insert_source(self, item: RawItem) -> str:
        row = self._execute(
            """
            INSERT INTO prompt_sources
                (source_type, source_id, source_url, title, content, author, score, raw_data)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id
            """,
            (
                item.source_type,
                item.source_id,
                item.source_url,
                item.title,
                item.content,
                item.author,
                item.score,
                # JSONB snapshot of the raw item for audit / replay
                json.dumps(item.to_raw_data()),
            ),
            fetch="one",
        )
        return str(row[0])

    def insert_prompt(self, source_row_id: str, prompt: CandidatePrompt, analysis: PromptAnalysis) -> str:
        row = self._execute(
            """
            INSERT INTO extracted_prompts
                (source_id, prompt_title, prompt_content, suggested_category,
                 quality_score, ai_analysis, language)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING id
            """,
            (
                source_row_id,
                prompt.title,
                prompt.content,
                prompt.category,
                prompt.quality,
                json.dumps(analysis.to_dict()),
                analysis.language,
            ),
            fetch="one",
        )
        return str(row[0])
