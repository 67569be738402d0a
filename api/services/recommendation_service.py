"""
Learning-path rebalance: which modules the learner should work on next.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from api.services.progress_service import course_snapshot
from api.utils.common import load_course
from coursegate.gating import ModuleStatus, module_status, next_reachable
from coursegate.gating.types import Role

logger = logging.getLogger(__name__)


def rebalance(db: Session, student_id: str, course_id: str, role: Role = Role.STUDENT) -> Tuple[List[str], Optional[str]]:
    """
    Modules to recommend, retakes first, then unlocked modules not yet done,
    each group in course order. Also returns the next reachable module id.
    """
    course = load_course(course_id, db)
    modules = course_snapshot(db, course, student_id)
    statuses = [module_status(modules, i, role) for i in range(len(modules))]
    retakes = [m.id for m, s in zip(modules, statuses) if s == ModuleStatus.RETAKE_REQUIRED]
    fresh = [m.id for m, s in zip(modules, statuses) if s == ModuleStatus.AVAILABLE]
    idx = next_reachable(modules, role)
    next_id = modules[idx].id if idx is not None else None
    logger.info("learning path student_id=%s course_id=%s retakes=%d available=%d next=%s", student_id, course_id, len(retakes), len(fresh), next_id)
    return retakes + fresh, next_id
