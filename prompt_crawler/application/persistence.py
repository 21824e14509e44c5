from __future__ import annotations
import logging

from prompt_crawler.domain.entities import ExtractionResult, RawItem, SaveOutcome
from prompt_crawler.domain.errors import StorageError
from prompt_crawler.domain.interfaces import IPromptStorage

log = logging.getLogger(__name__)


class PromptWriter:
    """
    Writes one prompt_sources row and its extracted_prompts rows.

    The source row always goes first. No prompt is ever written without
    a parent row; a failing prompt row does not stop its siblings.
    """

    def __init__(self, storage: IPromptStorage) -> None:
        self._storage = storage

    def save(self, item: RawItem, extraction: ExtractionResult | None) -> SaveOutcome | None:
        """
        Persist `item` and the prompts in `extraction`.
        Returns None when the source row could not be written.
        """
        try:
            source_row_id = self._storage.insert_source(item)
        except StorageError as exc:
            log.warning("Could not save %s:%s, skipping item: %s", item.source_type, item.source_id, exc)
            return None

        saved = 0
        if extraction is not None:
            for prompt in extraction.prompts:
                try:
                    self._storage.insert_prompt(source_row_id, prompt, extraction.analysis)
                    saved += 1
                except StorageError as exc:
                    log.warning("Could not save prompt %r for %s:%s: %s", prompt.title, item.source_type, item.source_id, exc)

        log.debug("Saved %s:%s as %s with %d prompts", item.source_type, item.source_id, source_row_id, saved)
        return SaveOutcome(source_row_id=source_row_id, prompt_count=saved)
