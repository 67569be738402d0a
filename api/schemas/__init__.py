"""
API schemas package. Import from submodules or from this package.

Example:
    from api.schemas import ProgressItem
    from api.schemas.progress_schemas import ProgressItem
"""

from api.schemas.auth_schemas import AuthTokenPayload
from api.schemas.user_schemas import CurrentUser
from api.schemas.progress_schemas import ProgressItem, ProgressResponse, ProgressUpdateRequest
from api.schemas.assessment_schemas import (
    LockedOutResponse,
    QuestionOut,
    QuestionResultOut,
    StartAssessmentRequest,
    StartAssessmentResponse,
    SubmitAssessmentRequest,
    SubmitAssessmentResponse,
)
from api.schemas.tracking_schemas import (
    ExperienceSyncRequest,
    ExperienceSyncResponse,
    IngestResponse,
    ModuleStats,
    ProctorIngestRequest,
)
from api.schemas.course_schemas import CourseAccessResponse, ModuleAccess, RebalanceResponse

__all__ = [
    "AuthTokenPayload",
    "CurrentUser",
    "ProgressItem",
    "ProgressResponse",
    "ProgressUpdateRequest",
    "LockedOutResponse",
    "QuestionOut",
    "QuestionResultOut",
    "StartAssessmentRequest",
    "StartAssessmentResponse",
    "SubmitAssessmentRequest",
    "SubmitAssessmentResponse",
    "ExperienceSyncRequest",
    "ExperienceSyncResponse",
    "IngestResponse",
    "ModuleStats",
    "ProctorIngestRequest",
    "CourseAccessResponse",
    "ModuleAccess",
    "RebalanceResponse",
]
