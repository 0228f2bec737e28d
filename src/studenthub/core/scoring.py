from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from studenthub.core.policy import Viewer, score_readable
from studenthub.db.repositories import Repository
from studenthub.errors import NotFound, Unauthorized
from studenthub.types import Achievement, AchievementSummary, DocumentStats, Level, ScoreSummary

# (name, lower bound inclusive, upper bound exclusive)
LEVEL_BANDS: tuple[tuple[Level, int, int | None], ...] = (
    ("Newcomer", 0, 50),
    ("Beginner", 50, 200),
    ("Intermediate", 200, 500),
    ("Advanced", 500, 1000),
    ("Expert", 1000, None),
)


def _band(total: int) -> tuple[Level, int, int | None]:
    if total < 0:
        raise ValueError("total score cannot be negative")
    for band in LEVEL_BANDS:
        _, lower, upper = band
        if total >= lower and (upper is None or total < upper):
            return band
    raise ValueError(f"no level band for score {total}")


def level(total: int) -> Level:
    return _band(total)[0]


def next_level_threshold(total: int) -> int | None:
    return _band(total)[2]


def progress_to_next_level(total: int) -> float:
    upper = next_level_threshold(total)
    if upper is None:
        return 100.0
    return max(0.0, min(100.0, total / upper * 100))


def summarize_score(student_id: int, total: int) -> ScoreSummary:
    return ScoreSummary(
        student_id=student_id,
        total_score=total,
        level=level(total),
        progress=progress_to_next_level(total),
        next_level_at=next_level_threshold(total),
    )


class ScoreAggregator:
    """Derives scores from the approved documents visible in ``session``.

    Nothing is cached; each call issues a fresh aggregate query.
    """

    def __init__(self, session: Session):
        self.session = session
        self.repo = Repository(session)

    def total_score(self, student_id: int) -> int:
        return self.repo.sum_approved_points([student_id])[student_id]

    def total_scores(self, student_ids: Iterable[int]) -> dict[int, int]:
        return self.repo.sum_approved_points(student_ids)

    def score_summary(self, viewer: Viewer, student_id: int) -> ScoreSummary:
        profile = self.repo.get_profile(student_id)
        if profile is None or profile.role != "student" or not score_readable(viewer, profile):
            raise NotFound("student not found")
        return summarize_score(student_id, self.total_score(student_id))

    def achievement_summary(self, viewer: Viewer, student_id: int) -> AchievementSummary:
        profile = self.repo.get_profile(student_id)
        if profile is None or profile.role != "student":
            raise NotFound("student not found")
        if not (viewer.owns(student_id) or viewer.is_faculty):
            if score_readable(viewer, profile):
                raise Unauthorized("achievement details are private")
            raise NotFound("student not found")

        counts = self.repo.count_documents_by_status(student_id)
        stats = DocumentStats(
            total=sum(counts.values()),
            pending=counts.get("pending", 0),
            approved=counts.get("approved", 0),
            rejected=counts.get("rejected", 0),
        )
        achievements = [
            Achievement(
                document_id=doc.id,
                title=doc.title,
                description=doc.description,
                file_type=doc.file_type,
                points_awarded=doc.points_awarded,
                approved_at=doc.approved_at,
            )
            for doc in self.repo.list_scoring_documents(student_id)
        ]
        total = sum(item.points_awarded for item in achievements)
        return AchievementSummary(
            score=summarize_score(student_id, total),
            stats=stats,
            achievements=achievements,
        )
