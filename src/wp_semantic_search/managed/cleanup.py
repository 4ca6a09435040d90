"""
Storage cleanup for the managed backend.

Removes files attached to the vector store, uploaded files in OpenAI Files
storage, and (optionally) leftover local .txt files. The vector store
itself is kept. A file that fails to delete is logged and skipped; a
failure to LIST files aborts the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import openai

if TYPE_CHECKING:
    from openai import OpenAI

logger = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    vector_store_files_deleted: list[str]
    uploaded_files_deleted: list[str]
    local_txt_deleted: int | None
    vs_txt_only: bool = False

    @property
    def anything_deleted(self) -> bool:
        return bool(self.vector_store_files_deleted or self.uploaded_files_deleted)

    def summary_lines(self) -> list[str]:
        only_txt = " (only .txt)" if self.vs_txt_only else ""
        skipped = " (skipped due to --vs-txt-only)" if self.vs_txt_only else ""
        local = "(skipped)" if self.local_txt_deleted is None else str(self.local_txt_deleted)
        return [
            "Cleanup Summary:",
            f"  Vector Store files deleted: {len(self.vector_store_files_deleted)}{only_txt}",
            f"  Uploaded files deleted: {len(self.uploaded_files_deleted)}{skipped}",
            f"  Local .txt files deleted: {local}",
            "  Vector Store deleted: No",
        ]


class StorageCleaner:
    """Bulk deletion of remote and local artifacts."""

    def __init__(self, client: OpenAI, vector_store_id: str | None):
        self._client = client
        self.vector_store_id = vector_store_id

    def _filename(self, file_id: str) -> str | None:
        try:
            return self._client.files.retrieve(file_id).filename
        except openai.OpenAIError as e:
            logger.warning(f"Could not look up filename for {file_id}: {e}")
            return None

    def delete_vector_store_files(self, only_txt: bool = False) -> list[str]:
        """Detach files from the vector store; optionally only *.txt ones."""
        if not self.vector_store_id:
            return []

        logger.info(f"Deleting files from Vector Store: {self.vector_store_id}")
        files = list(self._client.vector_stores.files.list(vector_store_id=self.vector_store_id))
        logger.info(f"Found {len(files)} files in vector store")

        deleted = []
        for vs_file in files:
            file_id = getattr(vs_file, "file_id", None) or vs_file.id
            if only_txt:
                filename = self._filename(file_id)
                if not filename or not filename.lower().endswith(".txt"):
                    continue
            try:
                self._client.vector_stores.files.delete(
                    vs_file.id, vector_store_id=self.vector_store_id
                )
            except openai.OpenAIError as e:
                logger.error(f"Failed to delete vector store file {vs_file.id}: {e}")
                continue
            logger.info(f"Deleted vector store file: {vs_file.id}")
            deleted.append(vs_file.id)
        return deleted

    def delete_uploaded_files(self) -> list[str]:
        """Delete every file in OpenAI Files storage."""
        logger.info("Deleting files from OpenAI Files storage...")
        files = list(self._client.files.list())
        logger.info(f"Found {len(files)} files in storage")

        deleted = []
        for f in files:
            try:
                self._client.files.delete(f.id)
            except openai.OpenAIError as e:
                logger.error(f"Failed to delete file {f.id}: {e}")
                continue
            logger.info(f"Deleted file: {f.id} ({getattr(f, 'filename', '')})")
            deleted.append(f.id)
        return deleted

    @staticmethod
    def delete_local_txt_files(directory: Path | str) -> int:
        """Delete *.txt directly inside directory (not recursive)."""
        target = Path(directory).resolve()
        logger.info(f"Deleting local .txt files in: {target}")
        if not target.is_dir():
            logger.info("Directory not found, skipping .txt cleanup.")
            return 0

        count = 0
        for path in sorted(target.iterdir()):
            if not (path.is_file() and path.name.lower().endswith(".txt")):
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"Failed to delete {path.name}: {e}")
                continue
            count += 1
        if count == 0:
            logger.info("No .txt files found.")
        return count

    def run(
        self,
        delete_txt: bool = False,
        txt_dir: Path | str = "data/tmp_uploads",
        vs_txt_only: bool = False,
    ) -> CleanupReport:
        if not self.vector_store_id:
            logger.warning("No OPENAI_VECTOR_STORE_ID found, skipping vector store cleanup")

        vs_deleted = self.delete_vector_store_files(only_txt=vs_txt_only)

        uploaded_deleted: list[str] = []
        if vs_txt_only:
            logger.info("Skipping OpenAI Files storage deletion because --vs-txt-only is set")
        else:
            uploaded_deleted = self.delete_uploaded_files()

        local_deleted = self.delete_local_txt_files(txt_dir) if delete_txt else None

        return CleanupReport(
            vector_store_files_deleted=vs_deleted,
            uploaded_files_deleted=uploaded_deleted,
            local_txt_deleted=local_deleted,
            vs_txt_only=vs_txt_only,
        )
