"""
Review model and the closed vocabularies it draws from
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


def utc_now():
    """Helper function for Pydantic default_factory to get current UTC time"""
    return datetime.now(timezone.utc)


class DifficultyText(str, Enum):
    EASY = "Easy"
    MODERATE = "Moderate"
    HARD = "Hard"


class ReviewTag(str, Enum):
    """Predefined tags a reviewer may attach to a review"""
    HEAVY_WORKLOAD = "Heavy Workload"
    LIGHT_WORKLOAD = "Light Workload"
    GROUP_PROJECTS = "Group Projects"
    LOTS_OF_READING = "Lots of Reading"
    TOUGH_GRADER = "Tough Grader"
    CLEAR_GRADING = "Clear Grading Criteria"
    TEST_HEAVY = "Test Heavy"
    PROJECT_BASED = "Project Based"
    LECTURE_HEAVY = "Lecture Heavy"
    PARTICIPATION_MATTERS = "Participation Matters"
    ATTENDANCE_MANDATORY = "Attendance Mandatory"
    GREAT_FEEDBACK = "Great Feedback"
    INSPIRATIONAL = "Inspirational"
    ACCESSIBLE_OUTSIDE_CLASS = "Accessible Outside Class"
    CARING_PROFESSOR = "Caring Professor"


MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


def difficulty_text_for(difficulty: int) -> DifficultyText:
    """
    Map a numeric difficulty to its label.

    1-2 -> Easy, 3-4 -> Moderate, 5 -> Hard. This is the only place the
    label is derived; stored labels must always agree with it.
    """
    if difficulty < MIN_DIFFICULTY or difficulty > MAX_DIFFICULTY:
        raise ValueError(f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}")
    if difficulty <= 2:
        return DifficultyText.EASY
    if difficulty <= 4:
        return DifficultyText.MODERATE
    return DifficultyText.HARD


class Review(BaseModel):
    """Review document as stored in the reviews collection"""
    course_id: str
    user_id: str
    rating: float
    difficulty: int
    difficulty_text: DifficultyText
    content: str
    tags: List[ReviewTag] = []
    helpful_users: List[str] = []
    helpful_count: int = Field(default=0, ge=0)
    semester: str
    professor: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    id: Optional[str] = None
