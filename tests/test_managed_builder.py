"""
Unit Tests for the Managed Index Builder

The OpenAI client is a MagicMock; file batches are returned as plain
dicts so RemoteBatchJob.from_api parses them exactly as it would an SDK
model dump.
"""

import json
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from wp_semantic_search.core.errors import RemoteBatchError
from wp_semantic_search.managed.batch import BatchStatus
from wp_semantic_search.managed.builder import ManagedIndexBuilder, document_payload
from wp_semantic_search.retrieval.document import Document


def make_docs(n):
    return [
        Document(
            id=f"post-{i}",
            title=f"Post {i}",
            excerpt=f"Excerpt {i}",
            body=f"Body {i}",
            link=f"https://example.com/?p={i}",
            text=f"Post {i}\n\nExcerpt {i}",
            timestamp=datetime(2024, 1, i + 1),
            post_id=i,
            slug=f"post-{i}",
        )
        for i in range(n)
    ]


def batch(status, completed=0, total=2):
    return {"id": "vsfb_1", "status": status, "file_counts": {"completed": completed, "total": total}}


@pytest.fixture
def client():
    c = MagicMock()
    uploads = iter(range(100))
    c.files.create.side_effect = lambda file, purpose: SimpleNamespace(id=f"file-{next(uploads)}")
    c.vector_stores.file_batches.create.return_value = batch("queued")
    c.vector_stores.file_batches.retrieve.side_effect = [
        batch("in_progress", completed=1),
        batch("completed", completed=2),
    ]
    return c


@pytest.fixture
def builder(client, tmp_path):
    return ManagedIndexBuilder(
        client=client,
        vector_store_id="vs_123",
        upload_dir=tmp_path / "uploads",
        upload_delay_s=0,
        poll_interval_s=0.01,
        sleep=lambda s: None,
    )


class TestDocumentPayload:

    def test_payload_fields(self):
        payload = document_payload(make_docs(1)[0])
        assert payload == {
            "id": 0,
            "slug": "post-0",
            "title": "Post 0",
            "link": "https://example.com/?p=0",
            "excerpt": "Excerpt 0",
            "content": "Body 0",
            "date": "2024-01-01T00:00:00",
        }


class TestManagedBuild:

    def test_writes_one_file_per_document(self, builder):
        paths = builder.write_upload_files(make_docs(2))

        assert [p.name for p in paths] == ["0.json", "1.json"]
        assert json.loads(paths[1].read_text(encoding="utf-8"))["title"] == "Post 1"

    def test_full_pipeline(self, builder, client):
        report = builder.build(make_docs(2))

        assert client.files.create.call_count == 2
        assert client.files.create.call_args.kwargs["purpose"] == "assistants"
        client.vector_stores.file_batches.create.assert_called_once_with(
            vector_store_id="vs_123", file_ids=["file-0", "file-1"]
        )
        client.vector_stores.file_batches.retrieve.assert_called_with("vsfb_1", vector_store_id="vs_123")
        assert report.job.status is BatchStatus.COMPLETED
        assert report.files_submitted == 2
        assert report.counts_match

    def test_count_mismatch_is_reported(self, builder, client):
        client.vector_stores.file_batches.retrieve.side_effect = [batch("completed", completed=1, total=1)]

        report = builder.build(make_docs(2))

        assert not report.counts_match

    def test_failed_batch_raises(self, builder, client):
        client.vector_stores.file_batches.retrieve.side_effect = [batch("failed")]

        with pytest.raises(RemoteBatchError, match="Batch failed"):
            builder.build(make_docs(2))

    def test_upload_failure_aborts(self, builder, client):
        client.files.create.side_effect = openai.APIConnectionError(
            request=httpx.Request("POST", "https://api.openai.com/v1/files")
        )

        with pytest.raises(RemoteBatchError, match="Upload failed for 0.json"):
            builder.build(make_docs(2))

        client.vector_stores.file_batches.create.assert_not_called()

    def test_empty_input_rejected(self, builder):
        with pytest.raises(ValueError):
            builder.build([])
