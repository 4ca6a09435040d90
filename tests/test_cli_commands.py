"""
Unit Tests for CLI Commands

Tests the CLI entry points without network calls. The WordPress client,
embedding provider and retrievers are patched where each command imports
them.

PATTERNS:
---------
1. Mock the expensive library calls
2. Test CLI argument parsing
3. Verify exit codes
4. Test error handling
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from wp_semantic_search.cli import commands
from wp_semantic_search.config import reset_settings
from wp_semantic_search.core.errors import ConfigurationError, InvalidQueryError
from wp_semantic_search.core.protocols import SearchResponse, SearchResult
from wp_semantic_search.embeddings import MockEmbeddings


@pytest.fixture
def env(monkeypatch, tmp_path):
    for name in (
        "OPENAI_API_KEY",
        "WORDPRESS_POSTS_URL",
        "OPENAI_VECTOR_STORE_ID",
        "OPENAI_VECTOR_ASSISTANT_ID",
        "PHOENIX_ENABLED",
        "MIN_SIMILARITY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EMBEDDINGS_FILE", str(tmp_path / "embeddings.json"))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    reset_settings()
    yield monkeypatch
    reset_settings()


def sample_response():
    return SearchResponse(
        query="caching",
        backend="local",
        results=[
            SearchResult(
                title="Speed up WordPress",
                link="https://example.com/?p=1",
                snippet="Use page caching",
                score=0.91,
                original_rank=1,
                document_id="post-1",
            )
        ],
        search_time_ms=12.5,
        min_similarity=0.3,
    )


def posts():
    return [
        {"id": 1, "title": {"rendered": "Speed up WordPress"},
         "excerpt": {"rendered": "Use page caching"}, "content": {"rendered": "Long body"},
         "link": "https://example.com/?p=1"},
        {"id": 2, "title": {"rendered": "x"}, "excerpt": {"rendered": ""}, "content": {"rendered": ""}},
    ]


# ---------------------------------------------------------------------------
# LOAD_ENV TESTS
# ---------------------------------------------------------------------------


class TestLoadEnv:

    def test_load_env_does_not_raise(self):
        commands._load_env()


# ---------------------------------------------------------------------------
# MAIN CLI DISPATCH TESTS
# ---------------------------------------------------------------------------


class TestMainCliDispatch:
    """Test main CLI dispatches to correct handlers."""

    @pytest.mark.parametrize("command,handler", [
        ("build-index", "run_build_index_cli"),
        ("build-index-vs", "run_build_index_vs_cli"),
        ("search", "run_search_cli"),
        ("vs-search", "run_vs_search_cli"),
        ("cleanup", "run_cleanup_cli"),
        ("health", "run_health_cli"),
        ("serve", "run_serve_cli"),
    ])
    def test_main_dispatches(self, env, command, handler):
        with patch.object(commands, handler, return_value=0) as mock_handler:
            result = commands.main([command, "--flag"])

        mock_handler.assert_called_once_with(["--flag"])
        assert result == 0

    def test_main_passes_query_words(self, env):
        with patch.object(commands, "run_search_cli", return_value=0) as mock_search:
            commands.main(["search", "page", "caching", "--topk", "3"])

        mock_search.assert_called_once_with(["page", "caching", "--topk", "3"])

    def test_main_handles_keyboard_interrupt(self, env):
        with patch.object(commands, "run_search_cli", side_effect=KeyboardInterrupt()):
            assert commands.main(["search", "q"]) == 130

    def test_main_reports_library_errors(self, env, capsys):
        with patch.object(commands, "run_search_cli", side_effect=InvalidQueryError()):
            result = commands.main(["search", " "])

        assert result == 1
        assert "search failed: Query must be a non-empty string" in capsys.readouterr().err

    def test_main_reports_filesystem_errors(self, env, capsys):
        error = PermissionError(13, "Permission denied", "data/embeddings.json")
        with patch.object(commands, "run_build_index_cli", side_effect=error):
            result = commands.main(["build-index"])

        assert result == 1
        assert "build-index failed: [Errno 13] Permission denied" in capsys.readouterr().err

    def test_missing_configuration_fails_fast(self, env, capsys):
        result = commands.main(["build-index"])

        assert result == 1
        assert "build-index failed: Missing OPENAI_API_KEY" in capsys.readouterr().err

    def test_unknown_command_exits(self, env):
        with pytest.raises(SystemExit):
            commands.main(["explode"])


# ---------------------------------------------------------------------------
# SEARCH COMMANDS
# ---------------------------------------------------------------------------


class TestSearchCli:

    def test_json_output(self, env, capsys):
        retriever = MagicMock()
        retriever.search.return_value = sample_response()

        with patch("wp_semantic_search.retrieval.get_retriever", return_value=retriever) as factory:
            result = commands.run_search_cli(["caching", "--topk", "3"])

        assert result == 0
        factory.assert_called_once_with("local")
        retriever.search.assert_called_once_with("caching", top_k=3)
        data = json.loads(capsys.readouterr().out)
        assert data["total_results"] == 1
        assert data["results"][0]["score"] == 0.91

    def test_text_output(self, env, capsys):
        retriever = MagicMock()
        retriever.search.return_value = sample_response()

        with patch("wp_semantic_search.retrieval.get_retriever", return_value=retriever):
            commands.run_search_cli(["caching", "--text"])

        out = capsys.readouterr().out
        assert '#1 [0.910] Speed up WordPress' in out
        assert "Use page caching..." in out

    def test_missing_query(self, env, capsys):
        assert commands.run_search_cli([]) == 1
        assert "usage" in capsys.readouterr().err

    def test_vs_search_prints_raw_text_on_parse_failure(self, env, capsys):
        retriever = MagicMock()
        retriever.search.return_value = SearchResponse(
            query="caching", backend="managed", raw_text="{not json"
        )

        with patch("wp_semantic_search.retrieval.get_retriever", return_value=retriever) as factory:
            result = commands.run_vs_search_cli(["caching"])

        assert result == 0
        factory.assert_called_once_with("managed")
        retriever.search.assert_called_once_with("caching", top_k=5)
        data = json.loads(capsys.readouterr().out)
        assert data["results"] == []
        assert data["raw_text"] == "{not json"


# ---------------------------------------------------------------------------
# BUILD COMMANDS
# ---------------------------------------------------------------------------


class TestBuildIndexCli:

    @pytest.fixture
    def wp_client(self):
        with patch("wp_semantic_search.ingest.WordPressClient") as cls:
            yield cls.return_value

    def test_no_posts_exits_cleanly(self, env, wp_client, capsys):
        env.setenv("OPENAI_API_KEY", "sk-test")
        env.setenv("WORDPRESS_POSTS_URL", "https://example.com/wp-json/wp/v2/posts")
        wp_client.fetch_all.return_value = []

        assert commands.run_build_index_cli([]) == 0
        assert "No posts found" in capsys.readouterr().out
        wp_client.close.assert_called_once()

    def test_builds_snapshot(self, env, wp_client, tmp_path):
        env.setenv("OPENAI_API_KEY", "sk-test")
        env.setenv("WORDPRESS_POSTS_URL", "https://example.com/wp-json/wp/v2/posts")
        wp_client.fetch_all.return_value = posts()

        with patch(
            "wp_semantic_search.embeddings.get_embedding_provider",
            return_value=MockEmbeddings(dimensions=8),
        ):
            assert commands.run_build_index_cli(["--batch-size", "10"]) == 0

        data = json.loads((tmp_path / "embeddings.json").read_text(encoding="utf-8"))
        assert data["total_documents"] == 1
        assert data["model"] == "mock-embedding"
        assert len(data["embeddings"][0]) == 8

    def test_build_index_vs_requires_vector_store(self, env):
        env.setenv("OPENAI_API_KEY", "sk-test")
        with pytest.raises(ConfigurationError, match="OPENAI_VECTOR_STORE_ID"):
            commands.run_build_index_vs_cli([])


# ---------------------------------------------------------------------------
# HEALTH
# ---------------------------------------------------------------------------


class TestHealthCli:

    def test_reports_missing_index(self, env, capsys):
        env.setenv("OPENAI_API_KEY", "sk-test")

        assert commands.run_health_cli([]) == 1
        out = capsys.readouterr().out
        assert "OPENAI_API_KEY: Set" in out
        assert "Embeddings file: Missing" in out

    def test_healthy(self, env, tmp_path, capsys):
        env.setenv("OPENAI_API_KEY", "sk-test")
        (tmp_path / "embeddings.json").write_text("{}", encoding="utf-8")

        assert commands.run_health_cli([]) == 0
        assert "Embeddings file: Found" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# SERVE
# ---------------------------------------------------------------------------


class TestServeCli:

    def test_runs_built_server(self, env):
        with patch("wp_semantic_search.server.build_server") as build:
            assert commands.run_serve_cli([]) == 0

        build.return_value.run.assert_called_once_with()
