from coursegate.gating.gate import (
    ModuleStatus,
    access_map,
    can_access,
    meets_threshold,
    module_status,
    next_reachable,
)
from coursegate.gating.types import DEFAULT_PASS_THRESHOLD, Course, Module, ModuleType, Role, StoreOrigin

__all__ = [
    "Course",
    "DEFAULT_PASS_THRESHOLD",
    "Module",
    "ModuleStatus",
    "ModuleType",
    "Role",
    "StoreOrigin",
    "access_map",
    "can_access",
    "meets_threshold",
    "module_status",
    "next_reachable",
]
