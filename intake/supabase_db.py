"""
Supabase PostgreSQL table for completed project submissions (cadastro_obra).
Each successful submission inserts exactly one row; rows are never updated here.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

from intake.config import TABLE_NAME
from intake.errors import PersistenceError
from intake.schema import (
    AIAnalysis,
    COLUMN_NAMES,
    FormData,
    PersistedRecord,
    TEXT_FIELDS,
)
from intake.supabase_storage import ImageStorage

logger = logging.getLogger(__name__)


def parse_floor_count(value: str) -> int:
    """Parse the floor count as an integer (leading/trailing spaces allowed)."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Número de pavimentos inválido: {value}") from e


def build_record(
    data: FormData,
    analysis: AIAnalysis,
    current_urls: List[str],
    final_urls: List[str],
) -> PersistedRecord:
    """Map form-side names onto the table's column names."""
    row: Dict[str, Any] = {
        COLUMN_NAMES[name]: data.get(name)
        for name in TEXT_FIELDS
        if name != "floorCount"
    }
    row[COLUMN_NAMES["floorCount"]] = parse_floor_count(data.floor_count)
    row[COLUMN_NAMES["currentSituationImageUrl"]] = list(current_urls)
    row[COLUMN_NAMES["finalProjectImageUrl"]] = list(final_urls)
    row[COLUMN_NAMES["aiAnalysis"]] = analysis
    return PersistedRecord(**row)


class ProjectStore:
    """Uploads a submission's photos and inserts its row."""

    def __init__(self, client, storage: ImageStorage, table: str = TABLE_NAME):
        self.client = client
        self.storage = storage
        self.table = table

    @classmethod
    def from_client(cls, client) -> "ProjectStore":
        return cls(client, ImageStorage(client))

    def save_record(self, data: FormData, analysis: AIAnalysis) -> Dict[str, Any]:
        """
        Upload both photo sequences concurrently, then insert one row.

        Args:
            data: Form values including attachments
            analysis: Result of the AI analysis, stored intact as JSON

        Returns:
            The inserted row as sent to the database

        Raises:
            UploadError: if any photo fails to upload
            PersistenceError: if the floor count is not numeric or the insert is rejected
        """
        logger.info("--- STARTING SUPABASE SAVE ---")
        # Reject a non-numeric floor count before anything is uploaded
        parse_floor_count(data.floor_count)

        with ThreadPoolExecutor(max_workers=2) as executor:
            current_future = executor.submit(self.storage.upload_images, data.current_situation_image)
            final_future = executor.submit(self.storage.upload_images, data.final_project_image)
            current_urls = current_future.result()
            final_urls = final_future.result()

        logger.info(f"Image URLs: current={current_urls} final={final_urls}")

        record = build_record(data, analysis, current_urls, final_urls)
        row = record.model_dump(mode="json")
        try:
            self.client.table(self.table).insert([row]).execute()
        except Exception as e:
            logger.error(f"❌ Error inserting data into Supabase: {e}", exc_info=True)
            _log_orphans(current_urls + final_urls)
            raise PersistenceError() from e

        logger.info("--- SUPABASE SAVE COMPLETE ---")
        return row


def _log_orphans(urls: List[str]) -> None:
    # Uploaded files are kept; list them so they can be reconciled by hand.
    if urls:
        logger.warning(f"⚠️ Record not saved; {len(urls)} uploaded image(s) left in storage: {urls}")
