"""Extractive summarizer and its saved history."""

from __future__ import annotations

import pytest

from miniapps_api.services import summarizer

ARTICLE = (
    "Solar power is growing quickly across the world. "
    "Cheap solar panels make solar power the cheapest source of new electricity. "
    "My neighbour painted his fence green last weekend. "
    "Grid operators now plan storage so solar power can cover the evening peak. "
    "Analysts expect solar power capacity to double again within five years."
)


class TestSummarize:
    def test_sentence_split_keeps_abbreviated_numbers(self):
        assert summarizer.split_sentences("It costs 3.5 dollars. Then it rose!  Really?") == [
            "It costs 3.5 dollars.",
            "Then it rose!",
            "Really?",
        ]

    def test_keeps_top_sentences_in_original_order(self):
        result = summarizer.summarize(ARTICLE, ratio=0.4)
        assert result["sentences_total"] == 5
        assert result["sentences_kept"] == 2
        assert "fence" not in result["summary"]
        kept = summarizer.split_sentences(result["summary"])
        original = summarizer.split_sentences(ARTICLE)
        assert [original.index(sentence) for sentence in kept] == sorted(original.index(s) for s in kept)
        assert result["original_words"] == summarizer.word_count(ARTICLE)
        assert 0 < result["compression"] < 100

    def test_always_keeps_one_sentence(self):
        assert summarizer.summarize(ARTICLE, ratio=0.01)["sentences_kept"] == 1

    def test_short_text_is_rejected(self):
        with pytest.raises(ValueError):
            summarizer.summarize("Too short to summarize.")

    @pytest.mark.parametrize("ratio", [0, -0.5, 1.5])
    def test_ratio_bounds(self, ratio):
        with pytest.raises(ValueError):
            summarizer.summarize(ARTICLE, ratio=ratio)


class TestSummarizeEndpoints:
    def test_summary_is_saved_to_history(self, api_client, auth_headers):
        response = api_client.post("/v1/summarize", json={"text": ARTICLE, "ratio": 0.4}, headers=auth_headers)
        assert response.status_code == 200
        history = api_client.get("/v1/summarize/history", headers=auth_headers).json()["items"]
        assert len(history) == 1
        entry = history[0]
        assert entry["summary"] == response.json()["summary"]
        assert entry["text"] == ARTICLE[:100]
        assert entry["original_words"] == response.json()["original_words"]
        assert entry["created_at"]

    def test_unsaved_summary_and_short_text(self, api_client, auth_headers):
        api_client.post("/v1/summarize", json={"text": ARTICLE, "save": False}, headers=auth_headers)
        assert api_client.get("/v1/summarize/history", headers=auth_headers).json()["items"] == []
        short = api_client.post("/v1/summarize", json={"text": "Hello there."}, headers=auth_headers)
        assert short.status_code == 400

    def test_history_is_capped_and_clearable(self, api_client, auth_headers, other_headers):
        for _ in range(12):
            api_client.post("/v1/summarize", json={"text": ARTICLE}, headers=auth_headers)
        assert len(api_client.get("/v1/summarize/history", headers=auth_headers).json()["items"]) == 10
        assert api_client.get("/v1/summarize/history", headers=other_headers).json()["items"] == []
        assert api_client.delete("/v1/summarize/history", headers=auth_headers).json() == {"ok": True}
        assert api_client.get("/v1/summarize/history", headers=auth_headers).json()["items"] == []
