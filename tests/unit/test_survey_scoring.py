"""Unit tests for survey scoring: categories, axes, type label and dialogue metrics."""

from dataclasses import dataclass

import pytest

from crossview.survey.questions import (
    CATEGORIES,
    CATEGORY_QUESTIONS,
    DIALOGUE_CATEGORIES,
    INDIVIDUAL_RIGHTS,
    QUESTION_COUNT,
    SOCIAL_ISSUES,
)
from crossview.survey.scoring import (
    anti_polarization,
    compute_axes,
    engagement_score,
    political_type,
    profile_from_scores,
    round_half_up,
    score_categories,
    score_survey,
)


@dataclass
class Answer:
    value: float
    weight: float = 1.0


class TestQuestionnaire:
    def test_eighteen_questions_over_sixteen_categories(self):
        assert QUESTION_COUNT == 18
        assert len(CATEGORIES) == 16
        assert sorted(i for indices in CATEGORY_QUESTIONS.values() for i in indices) == list(range(18))

    def test_two_question_categories(self):
        assert CATEGORY_QUESTIONS[INDIVIDUAL_RIGHTS] == [0, 1]
        assert CATEGORY_QUESTIONS[SOCIAL_ISSUES] == [7, 10]


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(0.5) == 1.0
        assert round_half_up(2.5) == 3.0
        assert round_half_up(2.25, 1) == 2.3

    def test_regular_rounding(self):
        assert round_half_up(5.1818, 1) == 5.2
        assert round_half_up(-6.04, 1) == -6.0


class TestScoreCategories:
    def test_weighted_average_per_category(self):
        responses = [None] * QUESTION_COUNT
        responses[0] = Answer(7, 1.2)
        responses[1] = Answer(3, 1.0)

        scores = score_categories(responses)

        assert scores[INDIVIDUAL_RIGHTS] == 5.2

    def test_zero_weight_scores_zero(self):
        responses = [Answer(7, 0.0)] * QUESTION_COUNT
        scores = score_categories(responses)
        assert all(value == 0.0 for value in scores.values())

    def test_unanswered_values_are_ignored(self):
        responses = [None] * QUESTION_COUNT
        responses[7] = Answer(0, 5.0)
        responses[10] = Answer(8, 1.0)
        assert score_categories(responses)[SOCIAL_ISSUES] == 8.0

    def test_short_response_list(self):
        scores = score_categories([Answer(9)])
        assert scores[INDIVIDUAL_RIGHTS] == 9.0
        assert scores[SOCIAL_ISSUES] == 0.0


class TestPoliticalType:
    @pytest.mark.parametrize(
        ("liberty", "social", "expected"),
        [
            (6, 6, "Progressive Libertarian"),
            (6, -6, "Conservative Libertarian"),
            (-6, 6, "Progressive Authoritarian"),
            (-6, -6, "Conservative Authoritarian"),
            (0, 5, "Progressive"),
            (0, -5, "Conservative"),
            (5, 0, "Libertarian"),
            (-5, 0, "Authoritarian"),
            (4.9, -4.9, "Centrist"),
        ],
    )
    def test_base_labels(self, liberty, social, expected):
        assert political_type(liberty, social) == expected

    def test_prefixes(self):
        assert political_type(6, 6, pragmatic_score=6, globalist_score=8) == (
            "Globalist Pragmatic Progressive Libertarian"
        )
        assert political_type(0, 0, pragmatic_score=-5, globalist_score=-7) == (
            "Nationalist Ideological Centrist"
        )
        assert political_type(0, 0, pragmatic_score=4, globalist_score=6.9) == "Centrist"


class TestScoreSurvey:
    def test_all_maximum_answers(self):
        result = score_survey([Answer(10)] * QUESTION_COUNT)

        assert result.axes.liberty_score == 6.0
        assert result.axes.social_score == 10.0
        assert result.axes.globalist_score == 10.0
        assert result.axes.pragmatic_score == 10.0
        assert result.axes.national_security == 0.0
        assert result.axes.economic_freedom == 0.0
        assert result.axes.environmentalism == 10.0
        assert result.political_type == "Globalist Pragmatic Progressive Libertarian"
        assert result.engagement_score == 100
        assert result.anti_polarization_score == 10.0
        assert result.anti_polarization_level == "Very High"

    def test_empty_survey(self):
        result = score_survey([None] * QUESTION_COUNT)

        assert result.axes.liberty_score == -6.0
        assert result.axes.social_score == -10.0
        assert result.political_type == "Nationalist Ideological Conservative Authoritarian"
        assert result.engagement_score == 0
        assert result.anti_polarization_level == "Very Low"

    def test_recomputing_from_category_scores_is_deterministic(self):
        responses = [Answer(value=(i % 10) + 1, weight=1 + (i % 3) * 0.1) for i in range(QUESTION_COUNT)]
        result = score_survey(responses)

        assert profile_from_scores(result.category_scores) == result
        assert score_survey(responses).as_dict() == result.as_dict()

    def test_as_dict_keys(self):
        payload = score_survey([Answer(5)] * QUESTION_COUNT).as_dict()
        assert set(payload) == {
            "category_scores",
            "political_axes",
            "political_type",
            "engagement_score",
            "anti_polarization_score",
            "anti_polarization_level",
        }
        assert set(payload["political_axes"]) >= {"liberty_score", "social_score", "inclusivity"}


class TestDialogueMetrics:
    def test_engagement_rounds_half_up(self):
        assert engagement_score({"Dialogic Tendency": 6.25}) == 63

    @pytest.mark.parametrize(
        ("value", "level"),
        [(8.0, "Very High"), (6.0, "High"), (4.0, "Moderate"), (2.0, "Low"), (1.9, "Very Low")],
    )
    def test_anti_polarization_levels(self, value, level):
        scores = {category: value for category in DIALOGUE_CATEGORIES}
        assert anti_polarization(scores) == (value, level)

    def test_axes_are_clamped(self):
        axes = compute_axes({category: 20.0 for category in CATEGORIES})
        assert axes.social_score == 10.0
        assert axes.inclusivity == 10.0
        assert axes.national_security == 0.0
