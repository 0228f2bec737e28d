from __future__ import annotations

from sqlalchemy.orm import Session

from studenthub.core.policy import Viewer, contact_readable, profile_readable, skills_readable
from studenthub.core.scoring import ScoreAggregator
from studenthub.db.models import Profile, StudentSkill
from studenthub.db.repositories import Repository
from studenthub.types import ProfileView, SearchFilters, StudentSearchResult, VisibleSkill


def profile_view(viewer: Viewer, profile: Profile) -> ProfileView:
    return ProfileView(
        id=profile.id,
        role=profile.role,
        full_name=profile.full_name,
        email=profile.email if contact_readable(viewer, profile) else None,
        department=profile.department,
        college=profile.college,
        year_of_study=profile.year_of_study,
        bio=profile.bio,
    )


def visible_skills(viewer: Viewer, profile: Profile, rows: list[StudentSkill]) -> list[VisibleSkill]:
    if not skills_readable(viewer, profile):
        return []
    return [
        VisibleSkill(
            skill_id=row.skill_id,
            name=row.skill.name,
            category=row.skill.category,
            proficiency_level=row.proficiency_level,
        )
        for row in rows
    ]


def _matches_text(needle: str, profile: Profile, skills: list[VisibleSkill]) -> bool:
    haystacks = [profile.full_name, profile.email, profile.bio]
    haystacks.extend(skill.name for skill in skills)
    return any(needle in value.lower() for value in haystacks)


class StudentDiscovery:
    """Privacy-filtered, score-ranked student search."""

    def __init__(self, session: Session):
        self.session = session
        self.repo = Repository(session)
        self.scores = ScoreAggregator(session)

    def search(self, viewer: Viewer, filters: SearchFilters | None = None) -> list[StudentSearchResult]:
        filters = filters or SearchFilters()
        candidates = [p for p in self.repo.list_student_profiles() if profile_readable(viewer, p)]
        skills_by_student = self.repo.list_student_skills(p.id for p in candidates)

        needle = filters.text.strip().lower()
        wanted_skill = (filters.skill or "").strip()
        survivors: list[tuple[ProfileView, list[VisibleSkill]]] = []
        for profile in candidates:
            view = profile_view(viewer, profile)
            skills = visible_skills(viewer, profile, skills_by_student.get(profile.id, []))

            if needle and not _matches_text(needle, profile, skills):
                continue
            if filters.department and profile.department != filters.department:
                continue
            if filters.college and profile.college != filters.college:
                continue
            if wanted_skill and not any(skill.name == wanted_skill for skill in skills):
                continue
            survivors.append((view, skills))

        totals = self.scores.total_scores(view.id for view, _ in survivors)
        results = [
            StudentSearchResult(profile=view, skills=skills, total_score=totals.get(view.id, 0))
            for view, skills in survivors
        ]
        results.sort(key=lambda item: (-item.total_score, item.profile.full_name))
        return results
