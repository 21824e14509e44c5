from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from prompt_crawler.domain.entities import (
    JOB_TYPES,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_RUNNING,
    CrawlConfig,
    JobResult,
    RawItem,
)
from prompt_crawler.domain.errors import StorageError
from prompt_crawler.domain.interfaces import IDeduplicator, IPromptExtractor, IPromptStorage
from .config_loader import ConfigLoader
from .orchestrator import CrawlerOrchestrator
from .persistence import PromptWriter

log = logging.getLogger(__name__)

ANALYSIS_PACING_SECS = 1.0


class CrawlApplicationService:
    """
    The top-level use case: crawl every selected source, extract prompts
    from the new items and persist them, tracked by one crawl_jobs row.

    Receives all dependencies via constructor injection. Build one per
    job run so connector state (the Reddit token) never outlives a run.
    """

    def __init__(
        self,
        orchestrator: CrawlerOrchestrator,
        storage: IPromptStorage,
        deduplicator: IDeduplicator,
        extractor: IPromptExtractor,
        analysis_pacing_secs: float = ANALYSIS_PACING_SECS,
    ) -> None:
        self._orchestrator  = orchestrator
        self._storage       = storage
        self._deduplicator  = deduplicator
        self._extractor     = extractor
        self._config_loader = ConfigLoader(storage)
        self._writer        = PromptWriter(storage)
        self._analysis_pacing_secs = analysis_pacing_secs
        self._analyses_run  = 0

    async def execute(self, job_type: str) -> JobResult:
        """
        Run one crawl job and return a JobResult describing it.

        Raises ValueError for an unknown job type (before anything is
        written) and StorageError when the job row itself cannot be
        created or finalized. Everything else is caught, recorded on the
        job as 'failed' and reported through the result.
        """
        if job_type not in JOB_TYPES:
            raise ValueError(f"Unknown job type: {job_type!r}")

        started_at = datetime.now(tz=timezone.utc)
        job_id     = self._storage.create_job(job_type)
        result     = JobResult(job_id=job_id, job_type=job_type, status=STATUS_RUNNING)

        log.info("CrawlApplicationService | job %s | type: %s", job_id, job_type)

        try:
            config = self._config_loader.load_config()

            async for source_type, items in self._orchestrator.collect(config, job_type):
                result.found_by_source[source_type] = len(items)
                for item in items:
                    await self._ingest(item, config, result)

            result.status = STATUS_COMPLETED
        except Exception as exc:
            log.error("Crawl job %s failed: %s", job_id, exc, exc_info=True)
            result.status        = STATUS_FAILED
            result.error_message = str(exc)

        result.elapsed_secs = (datetime.now(tz=timezone.utc) - started_at).total_seconds()

        # Counters are written once, here, never incrementally
        try:
            self._finish(job_id, result)
        except StorageError as exc:
            log.error("Could not finalize job %s as %s: %s", job_id, result.status, exc)
            if result.status != STATUS_FAILED:
                result.status        = STATUS_FAILED
                result.error_message = f"could not finalize job: {exc}"
                try:
                    self._finish(job_id, result)
                except StorageError as retry_exc:
                    log.error("Could not mark job %s failed: %s", job_id, retry_exc)
            raise
        log.info(
            "Job %s %s | found %d | new %d | prompts %d | %.0fs",
            job_id,
            result.status,
            result.items_found,
            result.items_new,
            result.prompts_extracted,
            result.elapsed_secs,
        )
        return result

    def _finish(self, job_id: str, result: JobResult) -> None:
        self._storage.finish_job(
            job_id,
            result.status,
            items_found       = result.items_found,
            items_new         = result.items_new,
            prompts_extracted = result.prompts_extracted,
            error             = result.error_message,
        )

    async def _ingest(self, item: RawItem, config: CrawlConfig, result: JobResult) -> None:
        """Dedup gate → extraction → persistence for a single raw item."""
        if not self._deduplicator.is_new(item.source_type, item.source_id):
            log.debug("Already known: %s:%s", item.source_type, item.source_id)
            return

        if self._analyses_run and self._analysis_pacing_secs:
            await asyncio.sleep(self._analysis_pacing_secs)
        self._analyses_run += 1

        extraction = await self._extractor.extract(item, config.ai_quality_threshold)

        outcome = self._writer.save(item, extraction)
        if outcome is None:
            return

        result.items_new         += 1
        result.prompts_extracted += outcome.prompt_count
        log.info(
            "New %s item %s | %d prompts kept",
            item.source_type,
            item.source_id,
            outcome.prompt_count,
        )
