from __future__ import annotations
import logging

from prompt_crawler.domain.errors import StorageError
from prompt_crawler.domain.interfaces import IDeduplicator, IPromptStorage

log = logging.getLogger(__name__)


class RegistryDeduplicator(IDeduplicator):
    """
    Deduplication against the persisted prompt_sources registry.

    This is check-then-act: two overlapping runs can both see the same
    item as new before either writes it. Runs are expected to come from a
    single scheduler, so the window is accepted rather than closed with a
    unique constraint.
    """

    def __init__(self, storage: IPromptStorage) -> None:
        self._storage = storage

    def is_new(self, source_type: str, source_id: str) -> bool:
        try:
            exists = self._storage.source_exists(source_type, source_id)
        except StorageError as exc:
            # Unknown state: skip now, the next run will look again
            log.warning("Dedup lookup failed for %s:%s, skipping: %s", source_type, source_id, exc)
            return False
        return not exists
