import pytest

from lms.features.projects.evaluation import EvaluationScores, aggregate, clamp, to_columns


def test_overall_is_mean_of_five_scores():
    scores = {"technical": 4, "quality": 5, "timeline": 3, "communication": 4, "innovation": 4}
    assert aggregate(scores) == 4.00


def test_overall_rounds_to_two_places():
    assert aggregate(EvaluationScores(5, 4, 4, 4, 4)) == 4.2
    assert aggregate(EvaluationScores(1, 1, 1, 1, 2)) == 1.2
    assert aggregate(EvaluationScores(3.333, 3.333, 3.333, 3.333, 3.333)) == 3.33


@pytest.mark.parametrize("raw,expected", [(0, 1), (-3, 1), (1, 1), (5, 5), (9, 5), (3, 3)])
def test_sub_scores_are_clamped_not_rejected(raw, expected):
    assert clamp(raw) == expected


def test_out_of_range_input_still_aggregates_within_bounds():
    assert aggregate({"technical": 10, "quality": 10, "timeline": 10, "communication": 10, "innovation": 10}) == 5.0
    assert aggregate({"technical": 0, "quality": -1, "timeline": 0, "communication": 0, "innovation": 0}) == 1.0


def test_to_columns_maps_clamped_integer_scores():
    cols = to_columns(EvaluationScores(technical=7, quality=4, timeline=0, communication=3, innovation=5))
    assert cols == {
        "technical_score": 5,
        "quality_score": 4,
        "timeline_score": 1,
        "communication_score": 3,
        "innovation_score": 5,
    }
