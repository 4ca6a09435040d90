"""
Managed index builder - Documents -> OpenAI vector store file batch.

Pipeline:
1. Write each document as its own JSON file under the upload directory
2. Upload the files (purpose="assistants"), keeping ids in submission order
3. Create ONE file batch on the vector store with every id
4. Poll the batch to a terminal state (see managed.batch.poll_batch)

No local embeddings are produced; the provider embeds the files.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Sequence

import openai

from wp_semantic_search.core.errors import RemoteBatchError
from wp_semantic_search.managed.batch import (
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_POLL_TIMEOUT_S,
    RemoteBatchJob,
    poll_batch,
)
from wp_semantic_search.observability import get_tracer
from wp_semantic_search.observability.attributes import (
    INDEX_REMOTE_FILE_COUNT,
    INDEX_REMOTE_JOB_ID,
    INDEX_REMOTE_JOB_STATUS,
)

if TYPE_CHECKING:
    from openai import OpenAI

    from wp_semantic_search.retrieval.document import Document

logger = logging.getLogger(__name__)


@dataclass
class ManagedBuildReport:
    """Outcome of a successful managed build."""
    job: RemoteBatchJob
    file_ids: list[str]

    @property
    def files_submitted(self) -> int:
        return len(self.file_ids)

    @property
    def counts_match(self) -> bool:
        return self.job.file_counts.total == self.files_submitted


def document_payload(doc: Document) -> dict:
    """JSON body uploaded for one document."""
    return {
        "id": doc.post_id if doc.post_id is not None else doc.id,
        "slug": doc.slug,
        "title": doc.title,
        "link": doc.link,
        "excerpt": doc.excerpt,
        "content": doc.body,
        "date": doc.timestamp.isoformat() if doc.timestamp else None,
    }


class ManagedIndexBuilder:
    """
    Uploads documents into an OpenAI vector store.

    The OpenAI client, sleep and clock are injected for testing.
    """

    def __init__(
        self,
        client: OpenAI,
        vector_store_id: str,
        upload_dir: Path | str,
        upload_delay_s: float = 0.1,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        poll_timeout_s: float = DEFAULT_POLL_TIMEOUT_S,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self.vector_store_id = vector_store_id
        self.upload_dir = Path(upload_dir)
        self.upload_delay_s = upload_delay_s
        self.poll_interval_s = poll_interval_s
        self.poll_timeout_s = poll_timeout_s
        self._sleep = sleep
        self._clock = clock

    # -----------------------------------------------------------------------
    # STEP 1: FILES ON DISK
    # -----------------------------------------------------------------------

    def write_upload_files(self, documents: Sequence[Document]) -> list[Path]:
        """Write one `<post id>.json` per document."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        paths = []
        for doc in documents:
            name = doc.post_id if doc.post_id is not None else (doc.slug or uuid.uuid4().hex)
            path = self.upload_dir / f"{name}.json"
            path.write_text(
                json.dumps(document_payload(doc), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            paths.append(path)
        logger.info(f"Prepared {len(paths)} files in {self.upload_dir}")
        return paths

    # -----------------------------------------------------------------------
    # STEP 2: UPLOAD
    # -----------------------------------------------------------------------

    def upload_files(self, paths: Sequence[Path]) -> list[str]:
        """Upload files one at a time; any failure aborts the build."""
        file_ids = []
        for count, path in enumerate(paths, start=1):
            try:
                with open(path, "rb") as f:
                    uploaded = self._client.files.create(file=f, purpose="assistants")
            except openai.OpenAIError as e:
                raise RemoteBatchError(f"Upload failed for {path.name}: {e}") from e

            file_ids.append(uploaded.id)
            if count % 20 == 0:
                logger.info(f"Uploaded {count}/{len(paths)}")
            if count < len(paths) and self.upload_delay_s > 0:
                self._sleep(self.upload_delay_s)

        logger.info(f"Uploaded {len(file_ids)} files")
        return file_ids

    # -----------------------------------------------------------------------
    # STEP 3/4: BATCH + POLL
    # -----------------------------------------------------------------------

    def create_batch(self, file_ids: list[str]) -> RemoteBatchJob:
        logger.info(
            f"Adding {len(file_ids)} files to vector store {self.vector_store_id} via file batch..."
        )
        try:
            created = self._client.vector_stores.file_batches.create(
                vector_store_id=self.vector_store_id,
                file_ids=file_ids,
            )
        except openai.OpenAIError as e:
            raise RemoteBatchError(f"Batch create failed: {e}") from e

        job = RemoteBatchJob.from_api(created)
        logger.info(f"File batch created: {job.id} status: {job.status.value}")
        return job

    def fetch_status(self, job_id: str) -> RemoteBatchJob:
        try:
            batch = self._client.vector_stores.file_batches.retrieve(
                job_id, vector_store_id=self.vector_store_id
            )
        except openai.OpenAIError as e:
            raise RemoteBatchError(f"Batch retrieve failed: {e}") from e
        return RemoteBatchJob.from_api(batch)

    def wait_for_completion(self, job: RemoteBatchJob) -> RemoteBatchJob:
        return poll_batch(
            self.fetch_status,
            job,
            interval_s=self.poll_interval_s,
            timeout_s=self.poll_timeout_s,
            clock=self._clock,
            sleep=self._sleep,
        )

    def build(self, documents: Sequence[Document]) -> ManagedBuildReport:
        """Run the full upload -> batch -> poll pipeline."""
        if not documents:
            raise ValueError("No documents to upload")

        with get_tracer().start_span(
            "managed.build", attributes={INDEX_REMOTE_FILE_COUNT: len(documents)}
        ) as span:
            paths = self.write_upload_files(documents)
            file_ids = self.upload_files(paths)
            job = self.create_batch(file_ids)
            span.set_attribute(INDEX_REMOTE_JOB_ID, job.id)

            with get_tracer().start_span("managed.poll", attributes={INDEX_REMOTE_JOB_ID: job.id}):
                job = self.wait_for_completion(job)
            span.set_attribute(INDEX_REMOTE_JOB_STATUS, job.status.value)

        report = ManagedBuildReport(job=job, file_ids=file_ids)
        if not report.counts_match:
            logger.warning(
                f"Batch {job.id} reports {job.file_counts.total} files, "
                f"{report.files_submitted} were submitted"
            )
        return report
