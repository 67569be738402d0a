"""
API data models. Single import surface for DB entities.

DB entities (api.models.models):
- Course, Module, ModuleProgress, QuizAttempt, ProctoringLog,
  ModuleExperience, ExperienceBeat
"""

from api.models.models import (
    Course,
    Module,
    ModuleProgress,
    QuizAttempt,
    ProctoringLog,
    ModuleExperience,
    ExperienceBeat,
)

__all__ = [
    "Course",
    "Module",
    "ModuleProgress",
    "QuizAttempt",
    "ProctoringLog",
    "ModuleExperience",
    "ExperienceBeat",
]
