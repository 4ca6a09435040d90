"""
Unit Tests for the managed-output reconciler

Tests JSON decoding with graceful degradation, the results/items
precedence rule and rank-decay score backfill.
"""

import json

import pytest

from wp_semantic_search.core.errors import ResponseParseError
from wp_semantic_search.retrieval.reconcile import (
    ManagedResultItem,
    decode_output,
    parse_managed_payload,
    rank_decay_score,
    reconcile,
    reconcile_output,
    select_items,
)


# ---------------------------------------------------------------------------
# PARSE
# ---------------------------------------------------------------------------


class TestDecodeOutput:

    def test_object_decodes(self):
        assert decode_output('{"results": []}') == {"results": []}

    def test_invalid_json_raises_with_raw_text(self):
        with pytest.raises(ResponseParseError) as exc_info:
            decode_output("{not json")
        assert exc_info.value.raw_text == "{not json"

    def test_array_is_not_an_object(self):
        with pytest.raises(ResponseParseError, match="not an object"):
            decode_output("[1, 2]")


class TestSelectItems:

    def test_results_preferred(self):
        assert select_items({"results": [{"a": 1}], "items": [{"b": 2}]}) == [{"a": 1}]

    def test_empty_results_falls_back_to_items(self):
        assert select_items({"results": [], "items": [{"b": 2}]}) == [{"b": 2}]

    def test_non_list_results_falls_back_to_items(self):
        assert select_items({"results": "nope", "items": [{"b": 2}]}) == [{"b": 2}]

    def test_neither_present(self):
        assert select_items({"answer": "text"}) == []


class TestParseManagedPayload:

    def test_parse_failure_degrades(self):
        payload = parse_managed_payload("{not json")
        assert payload.items == []
        assert payload.raw_text == "{not json"

    def test_none_text_degrades(self):
        payload = parse_managed_payload(None)
        assert payload.items == []
        assert payload.raw_text == ""

    def test_success_has_no_raw_text(self):
        payload = parse_managed_payload('{"items": [{"title": "x"}]}')
        assert payload.items == [{"title": "x"}]
        assert payload.raw_text is None


# ---------------------------------------------------------------------------
# ITEM COERCION
# ---------------------------------------------------------------------------


class TestManagedResultItem:

    def test_nulls_become_empty_strings(self):
        item = ManagedResultItem.model_validate({"title": None, "link": None})
        assert item.title == ""
        assert item.link == ""
        assert item.source is None

    @pytest.mark.parametrize("score", ["0.9", None, True, float("nan"), float("inf"), 10**400])
    def test_unusable_scores_become_none(self, score):
        assert ManagedResultItem.model_validate({"score": score}).score is None

    def test_integer_score_kept(self):
        assert ManagedResultItem.model_validate({"score": 1}).score == 1.0

    @pytest.mark.parametrize("rank", [0, -3, "2", 1.5])
    def test_unusable_ranks_become_none(self, rank):
        assert ManagedResultItem.model_validate({"original_rank": rank}).original_rank is None

    def test_extra_fields_allowed(self):
        item = ManagedResultItem.model_validate({"title": "t", "file_id": "file-1"})
        assert item.title == "t"


# ---------------------------------------------------------------------------
# RECONCILE
# ---------------------------------------------------------------------------


class TestRankDecayScore:

    def test_single_result_scores_one(self):
        assert rank_decay_score(0, 1) == 1.0

    def test_three_results(self):
        assert [rank_decay_score(i, 3) for i in range(3)] == [1.0, 0.5, 0.0]

    def test_rounded_to_six_places(self):
        assert rank_decay_score(1, 4) == 0.666667


class TestReconcile:

    def test_backfills_scores_and_ranks(self):
        items = [{"title": "a"}, {"title": "b"}, {"title": "c"}]

        results = reconcile(items, top_k=5)

        assert [r.score for r in results] == [1.0, 0.5, 0.0]
        assert [r.original_rank for r in results] == [1, 2, 3]

    def test_keeps_model_scores(self):
        results = reconcile([{"title": "a", "score": 0.42}, {"title": "b"}], top_k=5)
        assert results[0].score == 0.42
        assert results[1].score == 0.0

    def test_caps_before_backfill(self):
        items = [{"title": str(i)} for i in range(10)]

        results = reconcile(items, top_k=3)

        assert [r.title for r in results] == ["0", "1", "2"]
        assert [r.score for r in results] == [1.0, 0.5, 0.0]

    def test_non_object_entries_dropped(self):
        results = reconcile(["junk", 3, {"title": "kept"}], top_k=5)
        assert [r.title for r in results] == ["kept"]
        assert results[0].score == 1.0

    def test_duplicates_are_not_removed(self):
        item = {"title": "same", "link": "https://example.com/a"}
        assert len(reconcile([item, item], top_k=5)) == 2


class TestReconcileOutput:

    def test_invalid_json_scenario(self):
        out = reconcile_output("{not json", top_k=5)
        assert out.to_dict() == {"results": [], "raw_text": "{not json"}

    def test_valid_output_has_no_raw_text(self):
        text = json.dumps({"results": [{"title": "A", "link": "https://x", "snippet": "s", "source": "1.json"}]})

        data = reconcile_output(text, top_k=5).to_dict()

        assert "raw_text" not in data
        assert data["results"] == [
            {"title": "A", "link": "https://x", "snippet": "s", "score": 1.0, "original_rank": 1, "source": "1.json"}
        ]

    def test_oversized_integer_score_is_backfilled(self):
        text = json.dumps({"results": [{"title": "a", "score": 10**400}]})

        data = reconcile_output(text, top_k=5).to_dict()

        assert data["results"][0]["title"] == "a"
        assert data["results"][0]["score"] == 1.0
