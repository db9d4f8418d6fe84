"""
Candidate matching: which consultants could cover a period of a schedule,
and in which order to offer them.

Hard constraints make a consultant ineligible (inactive, not available,
already booked, missing a required skill, rated below the threshold).
Eligible consultants are ranked by a weighted score over skill match,
availability and rating; ineligible ones are listed after them, unranked,
with the constraints they failed.
"""
from typing import List, NamedTuple, Optional

from flask import current_app

from staffing.models import Consultant
from staffing.services.allocator import AssignmentAllocator, OverlapScope, coerce_id, coerce_moment
from staffing.services.errors import InvalidStateTransition, ValidationError
from staffing.services.schedule_manager import load_schedule
from staffing.utils.validators import validate_positive_number

CONSULTANT_INACTIVE = 'consultant_inactive'
DATE_UNAVAILABLE = 'date_unavailable'
SCHEDULE_CONFLICT = 'schedule_conflict'
MISSING_SKILLS = 'missing_skills'
BELOW_RATING_THRESHOLD = 'below_rating_threshold'

DEFAULT_WEIGHTS = {'skills': 0.60, 'availability': 0.25, 'performance': 0.15}

# Unrated consultants are neither rewarded nor punished
UNRATED_PERFORMANCE_SCORE = 70


class Candidate(NamedTuple):
    consultant: Consultant
    score: float
    scores: dict
    matched_skills: List[str]
    failed: List[str]
    warnings: List[str]
    conflicting_ids: List[int]
    rank: Optional[int] = None

    @property
    def eligible(self):
        return not self.failed

    def to_dict(self):
        return {
            'consultant_id': self.consultant.id,
            'consultant_name': self.consultant.name,
            'specialty': self.consultant.specialty,
            'rating': self.consultant.rating,
            'eligible': self.eligible,
            'rank': self.rank,
            'score': self.score,
            'scores': self.scores,
            'matched_skills': self.matched_skills,
            'failed': self.failed,
            'warnings': self.warnings,
            'conflicting_ids': self.conflicting_ids,
        }


class CandidateList(NamedTuple):
    schedule_id: int
    candidates: List[Candidate]
    total_evaluated: int
    total_eligible: int

    def to_dict(self):
        return {
            'schedule_id': self.schedule_id,
            'candidates': [c.to_dict() for c in self.candidates],
            'total_evaluated': self.total_evaluated,
            'total_eligible': self.total_eligible,
        }


def _parse_skills(skills):
    if skills is None:
        return []
    if isinstance(skills, str):
        skills = skills.split(',')
    if not isinstance(skills, list) or not all(isinstance(s, str) for s in skills):
        raise ValidationError('skills must be a list of strings')
    return [s.strip() for s in skills if s.strip()]


def matched_skills(have, wanted):
    """Wanted skills the consultant has, matched case-insensitively either way round"""
    known = [s.strip().lower() for s in (have or []) if isinstance(s, str) and s.strip()]
    matched = []
    for skill in wanted:
        needle = skill.lower()
        if any(needle in k or k in needle for k in known):
            matched.append(skill)
    return matched


class CandidateMatcher:

    def __init__(self, allocator=None, weights=None):
        self.allocator = allocator or AssignmentAllocator()
        self.availability = self.allocator.availability
        self._weights = weights

    @property
    def weights(self):
        return self._weights or current_app.config.get('CANDIDATE_SCORING_WEIGHTS', DEFAULT_WEIGHTS)

    def _score(self, skill_score, availability_score, performance_score):
        weights = self.weights
        total = (skill_score * weights.get('skills', 0)
                 + availability_score * weights.get('availability', 0)
                 + performance_score * weights.get('performance', 0))
        return round(total, 2)

    def evaluate(self, consultant, target, skills, min_rating):
        """Check one consultant against the hard constraints and score them"""
        failed, warnings = [], []

        if not consultant.is_active:
            failed.append(CONSULTANT_INACTIVE)

        check = self.availability.check(consultant.id, target)
        if not check.available:
            failed.append(DATE_UNAVAILABLE)
        if check.partial:
            warnings.append('Consultant is in training for part of the period')

        booked = self.allocator.find_overlaps(consultant.id, target, scope=OverlapScope.GLOBAL)
        if booked:
            failed.append(SCHEDULE_CONFLICT)

        matched = matched_skills(consultant.skills, skills)
        if len(matched) < len(skills):
            failed.append(MISSING_SKILLS)

        # An unrated consultant passes the rating threshold
        if min_rating is not None and consultant.rating is not None and consultant.rating < min_rating:
            failed.append(BELOW_RATING_THRESHOLD)

        scores = {
            'skills': round(100 * len(matched) / len(skills)) if skills else 100,
            'availability': 0 if not check.available else (50 if check.partial else 100),
            'performance': UNRATED_PERFORMANCE_SCORE if consultant.rating is None
            else round(consultant.rating / 5 * 100),
        }
        return Candidate(
            consultant=consultant,
            score=self._score(scores['skills'], scores['availability'], scores['performance']),
            scores=scores,
            matched_skills=matched,
            failed=failed,
            warnings=warnings,
            conflicting_ids=[a.id for a in booked],
        )

    def suggest_candidates(self, schedule_id, start, end, skills=None, min_rating=None,
                           include_ineligible=True, limit=None):
        """Rank every consultant for ``[start, end)`` of a schedule. Returns a CandidateList."""
        schedule_id = coerce_id(schedule_id, 'schedule_id')
        start_at = coerce_moment(start, 'start_at')
        end_at = coerce_moment(end, 'end_at')
        skills = _parse_skills(skills)

        if min_rating is not None:
            is_valid, error = validate_positive_number(min_rating, 'min_rating', maximum=5)
            if not is_valid:
                raise ValidationError(error)
        if not isinstance(include_ineligible, bool):
            raise ValidationError('include_ineligible must be a boolean')
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 1):
            raise ValidationError('limit must be a positive integer')

        schedule = load_schedule(schedule_id)
        if schedule.is_terminal:
            raise InvalidStateTransition(
                f'Cannot staff a {schedule.status.value} schedule',
                entity_id=schedule.id,
                current=schedule.status.value,
                allowed=[]
            )
        target = self.allocator.check_bounds(schedule, start_at, end_at)

        evaluated = [
            self.evaluate(consultant, target, skills, min_rating)
            for consultant in Consultant.query.order_by(Consultant.name, Consultant.id).all()
        ]
        evaluated.sort(key=lambda c: (not c.eligible, -c.score, c.consultant.name, c.consultant.id))

        candidates = []
        rank = 0
        for candidate in evaluated:
            if candidate.eligible:
                rank += 1
                candidate = candidate._replace(rank=rank)
            elif not include_ineligible:
                continue
            candidates.append(candidate)
        if limit is not None:
            candidates = candidates[:limit]

        current_app.logger.info(
            'Candidates for schedule %s (%s..%s): %d evaluated, %d eligible',
            schedule.id, target.start.isoformat(), target.end.isoformat(), len(evaluated), rank
        )
        return CandidateList(schedule.id, candidates, len(evaluated), rank)
