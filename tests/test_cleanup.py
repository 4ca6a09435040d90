"""
Unit Tests for managed storage cleanup
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from wp_semantic_search.managed.cleanup import CleanupReport, StorageCleaner


def api_error(message="boom"):
    return openai.APIConnectionError(
        message=message, request=httpx.Request("DELETE", "https://api.openai.com/v1/files")
    )


@pytest.fixture
def client():
    c = MagicMock()
    c.vector_stores.files.list.return_value = [
        SimpleNamespace(id="vsf-1", file_id="file-1"),
        SimpleNamespace(id="vsf-2", file_id="file-2"),
    ]
    names = {"file-1": "1.json", "file-2": "notes.txt"}
    c.files.retrieve.side_effect = lambda file_id: SimpleNamespace(filename=names[file_id])
    c.files.list.return_value = [
        SimpleNamespace(id="file-1", filename="1.json"),
        SimpleNamespace(id="file-2", filename="notes.txt"),
    ]
    return c


class TestVectorStoreFiles:

    def test_deletes_all_files(self, client):
        deleted = StorageCleaner(client, "vs_1").delete_vector_store_files()

        assert deleted == ["vsf-1", "vsf-2"]
        client.vector_stores.files.delete.assert_any_call("vsf-1", vector_store_id="vs_1")

    def test_txt_only_filter(self, client):
        deleted = StorageCleaner(client, "vs_1").delete_vector_store_files(only_txt=True)
        assert deleted == ["vsf-2"]

    def test_failed_delete_is_skipped(self, client):
        client.vector_stores.files.delete.side_effect = [api_error(), None]

        deleted = StorageCleaner(client, "vs_1").delete_vector_store_files()

        assert deleted == ["vsf-2"]

    def test_listing_failure_propagates(self, client):
        client.vector_stores.files.list.side_effect = api_error("list failed")
        with pytest.raises(openai.APIConnectionError):
            StorageCleaner(client, "vs_1").delete_vector_store_files()

    def test_no_vector_store_is_a_no_op(self, client):
        assert StorageCleaner(client, None).delete_vector_store_files() == []
        client.vector_stores.files.list.assert_not_called()


class TestLocalTxtFiles:

    def test_deletes_only_top_level_txt(self, tmp_path):
        (tmp_path / "a.txt").write_text("x")
        (tmp_path / "B.TXT").write_text("x")
        (tmp_path / "keep.json").write_text("{}")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "nested.txt").write_text("x")

        assert StorageCleaner.delete_local_txt_files(tmp_path) == 2
        assert sorted(p.name for p in tmp_path.iterdir()) == ["keep.json", "sub"]
        assert (tmp_path / "sub" / "nested.txt").exists()

    def test_missing_directory(self, tmp_path):
        assert StorageCleaner.delete_local_txt_files(tmp_path / "nope") == 0


class TestRun:

    def test_full_cleanup(self, client, tmp_path):
        (tmp_path / "a.txt").write_text("x")

        report = StorageCleaner(client, "vs_1").run(delete_txt=True, txt_dir=tmp_path)

        assert report.vector_store_files_deleted == ["vsf-1", "vsf-2"]
        assert report.uploaded_files_deleted == ["file-1", "file-2"]
        assert report.local_txt_deleted == 1
        assert report.anything_deleted

    def test_vs_txt_only_skips_files_storage(self, client):
        report = StorageCleaner(client, "vs_1").run(vs_txt_only=True)

        assert report.vector_store_files_deleted == ["vsf-2"]
        assert report.uploaded_files_deleted == []
        assert report.local_txt_deleted is None
        client.files.delete.assert_not_called()

    def test_summary_lines(self):
        report = CleanupReport(["a"], [], None, vs_txt_only=True)
        lines = report.summary_lines()

        assert lines[1] == "  Vector Store files deleted: 1 (only .txt)"
        assert lines[2] == "  Uploaded files deleted: 0 (skipped due to --vs-txt-only)"
        assert lines[3] == "  Local .txt files deleted: (skipped)"
        assert lines[4] == "  Vector Store deleted: No"
