from __future__ import annotations
import asyncio
import logging
from typing import AsyncIterator, Iterable

from prompt_crawler.domain.entities import JOB_ALL, JOB_TYPES, CrawlConfig, RawItem
from prompt_crawler.domain.interfaces import ISourceConnector

log = logging.getLogger(__name__)

CONNECTOR_PACING_SECS = 1.5


class CrawlerOrchestrator:
    """
    Runs the source connectors one source type at a time.

    Connectors are injected and keyed by their `source_type`, so the job
    type selects implementations instead of being branched on:
      - "reddit" / "github" → that connector only
      - "all"               → every connector, in registration order

    In tests pass fake connectors and pacing_secs=0.
    """

    def __init__(self, connectors: Iterable[ISourceConnector], pacing_secs: float = CONNECTOR_PACING_SECS) -> None:
        self._connectors = {c.source_type: c for c in connectors}
        self._pacing_secs = pacing_secs

    def connectors_for(self, job_type: str) -> list[ISourceConnector]:
        if job_type not in JOB_TYPES:
            raise ValueError(f"Unknown job type: {job_type!r}")
        if job_type == JOB_ALL:
            return list(self._connectors.values())
        connector = self._connectors.get(job_type)
        return [connector] if connector is not None else []

    async def collect(self, config: CrawlConfig, job_type: str) -> AsyncIterator[tuple[str, list[RawItem]]]:
        """
        Async generator — yields (source_type, items) once per connector.

        The caller finishes processing one source type before the next
        connector is started, so sources never interleave.
        """
        connectors = self.connectors_for(job_type)

        for index, connector in enumerate(connectors):
            if index > 0 and self._pacing_secs:
                await asyncio.sleep(self._pacing_secs)

            log.info("Crawling %s …", connector.source_type)
            items = await connector.fetch(config)
            log.info("Found %d %s items", len(items), connector.source_type)
            yield connector.source_type, items
