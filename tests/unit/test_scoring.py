import pytest

from studenthub.core.scoring import level, next_level_threshold, progress_to_next_level, summarize_score


@pytest.mark.parametrize(
    ("total", "expected"),
    [
        (0, "Newcomer"),
        (49, "Newcomer"),
        (50, "Beginner"),
        (199, "Beginner"),
        (200, "Intermediate"),
        (499, "Intermediate"),
        (500, "Advanced"),
        (999, "Advanced"),
        (1000, "Expert"),
        (25000, "Expert"),
    ],
)
def test_level_band_boundaries(total: int, expected: str) -> None:
    assert level(total) == expected


def test_progress_is_fraction_of_next_threshold() -> None:
    assert progress_to_next_level(0) == 0.0
    assert progress_to_next_level(25) == pytest.approx(50.0)
    assert progress_to_next_level(100) == pytest.approx(50.0)
    assert progress_to_next_level(250) == pytest.approx(50.0)


def test_progress_is_clamped_at_top_level() -> None:
    assert progress_to_next_level(1000) == 100.0
    assert progress_to_next_level(5000) == 100.0
    assert next_level_threshold(1000) is None


def test_negative_total_is_rejected() -> None:
    with pytest.raises(ValueError):
        level(-1)


def test_summary_for_fifty_five_points() -> None:
    summary = summarize_score(student_id=7, total=55)
    assert summary.level == "Beginner"
    assert summary.next_level_at == 200
    assert summary.progress == pytest.approx(27.5)
