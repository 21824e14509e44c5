from __future__ import annotations
import csv
import logging

log = logging.getLogger(__name__)

OUTPUT_FILE = "pending_prompts.csv"

PENDING_PROMPTS_SQL = """
SELECT
    p.id,
    p.prompt_title,
    p.prompt_content,
    p.suggested_category,
    p.quality_score,
    p.language,
    s.source_type,
    s.source_url,
    s.title AS source_title,
    p.created_at
FROM extracted_prompts p
JOIN prompt_sources s ON s.id = p.source_id
WHERE p.is_approved = FALSE
ORDER BY p.quality_score DESC, p.created_at DESC
LIMIT %s
"""


def export_pending_prompts(conn, output_path: str = OUTPUT_FILE, limit: int = 500) -> int:
    """
    Write extracted prompts still awaiting review to a CSV file, best
    first. Returns the number of rows written.
    """
    with conn.cursor() as cur:
        log.info("Querying pending extracted prompts …")
        cur.execute(PENDING_PROMPTS_SQL, (limit,))
        rows = cur.fetchall()
        columns = [desc[0] for desc in cur.description]

    log.info("Writing %d rows to %s …", len(rows), output_path)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(columns)
        writer.writerows(rows)

    log.info("Export complete: %s (%d rows)", output_path, len(rows))
    return len(rows)
