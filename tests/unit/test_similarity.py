"""Unit tests for pairwise article similarity."""

from datetime import timedelta

from crossview.events.similarity import (
    SimilarityThresholds,
    are_similar,
    title_similarity,
    within_window,
)


class TestTitleSimilarity:
    def test_identical_titles_score_one(self):
        assert title_similarity("Senate passes budget bill", "Senate passes budget bill") == 1.0

    def test_case_and_punctuation_are_ignored(self):
        assert title_similarity("Senate passes budget bill!", "senate passes budget bill") == 1.0

    def test_disjoint_titles_score_zero(self):
        assert title_similarity("Senate passes budget bill", "Lakers clinch playoff berth") == 0.0

    def test_empty_title_scores_zero(self):
        assert title_similarity("", "Senate passes budget bill") == 0.0

    def test_two_empty_titles_are_identical(self):
        assert title_similarity("", "") == 1.0
        assert title_similarity("  ", "!") == 1.0

    def test_containment_scales_by_length_ratio(self):
        short = "senate passes budget"
        long = "senate passes budget after long debate"
        assert abs(title_similarity(short, long) - 0.8 * len(short) / len(long)) < 1e-9

    def test_partial_overlap_blends_jaccard_and_match_ratio(self):
        # content words: {senate, passes, budget, bill} vs {senate, rejects, budget, bill}
        score = title_similarity("Senate passes budget bill", "Senate rejects budget bill")
        assert abs(score - (0.6 * 3 / 5 + 0.4 * 3 / 4)) < 1e-9


class TestAreSimilar:
    def test_same_source_is_never_similar(self, make_article):
        a = make_article("Senate passes budget bill", "cnn")
        b = make_article("Senate passes budget bill", "cnn")
        assert are_similar(a, b) is False

    def test_near_identical_titles_from_different_sources(self, make_article):
        a = make_article("Senate passes budget bill", "cnn")
        b = make_article("Senate passes budget bill", "fox-news")
        assert are_similar(a, b) is True

    def test_unrelated_articles_are_not_similar(self, make_article):
        a = make_article("Senate passes budget bill", "cnn")
        b = make_article("Lakers clinch playoff berth", "fox-news")
        assert are_similar(a, b) is False

    def test_shared_entities_lift_moderate_title_overlap(self, make_article):
        a = make_article(
            "Supreme Court hears Joe Biden student loan case",
            "cnn",
            description="The Supreme Court weighed Joe Biden loan relief.",
        )
        b = make_article(
            "Joe Biden loan plan faces Supreme Court skeptics",
            "fox-news",
            description="Justices of the Supreme Court questioned Joe Biden.",
        )
        assert are_similar(a, b) is True

    def test_time_window_rule_requires_publication_dates(self, make_article):
        a = make_article("Hurricane Milton nears Florida coast", "cnn", published_at=None)
        b = make_article("Hurricane Milton strengthens offshore", "bbc-news", published_at=None)
        assert within_window(a, b, timedelta(hours=12)) is False

    def test_custom_thresholds_are_honoured(self, make_article):
        a = make_article("Senate passes budget bill", "cnn")
        b = make_article("Senate rejects budget bill", "fox-news")
        strict = SimilarityThresholds(
            strong_title=0.99,
            entity_title=0.99,
            keyword_title=0.99,
            time_title=0.99,
        )
        assert are_similar(a, b, strict) is False
