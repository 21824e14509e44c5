"""Idempotent DDL for the crawler tables."""

from __future__ import annotations
import logging

log = logging.getLogger(__name__)

# prompt_sources has a plain (non-unique) lookup index on
# (source_type, source_id); uniqueness is the dedup gate's job.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS crawl_config (
    config_key   TEXT PRIMARY KEY,
    config_value TEXT NOT NULL,
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS crawl_jobs (
    id                UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    job_type          TEXT NOT NULL CHECK (job_type IN ('all', 'reddit', 'github')),
    status            TEXT NOT NULL CHECK (status IN ('running', 'completed', 'failed')),
    started_at        TIMESTAMPTZ,
    completed_at      TIMESTAMPTZ,
    items_found       INTEGER NOT NULL DEFAULT 0,
    items_new         INTEGER NOT NULL DEFAULT 0,
    prompts_extracted INTEGER NOT NULL DEFAULT 0,
    error_message     TEXT,
    created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS prompt_sources (
    id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    source_type TEXT NOT NULL,
    source_id   TEXT NOT NULL,
    source_url  TEXT,
    title       TEXT,
    content     TEXT NOT NULL DEFAULT '',
    author      TEXT,
    score       INTEGER NOT NULL DEFAULT 0,
    raw_data    JSONB,
    crawled_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS prompt_sources_source_key_idx
    ON prompt_sources (source_type, source_id);

CREATE TABLE IF NOT EXISTS extracted_prompts (
    id                 UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    source_id          UUID NOT NULL REFERENCES prompt_sources (id) ON DELETE CASCADE,
    prompt_title       TEXT NOT NULL,
    prompt_content     TEXT NOT NULL,
    suggested_category TEXT,
    quality_score      NUMERIC(4, 2) NOT NULL CHECK (quality_score BETWEEN 0 AND 10),
    ai_analysis        JSONB,
    language           TEXT NOT NULL DEFAULT 'en',
    is_approved        BOOLEAN NOT NULL DEFAULT FALSE,
    created_at         TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS extracted_prompts_pending_idx
    ON extracted_prompts (is_approved, quality_score DESC);
"""


def ensure_schema(conn) -> None:
    """Create every table and index that does not exist yet."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)
    conn.commit()
    log.info("Schema is up to date")
