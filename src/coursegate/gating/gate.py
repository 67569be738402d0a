"""
Progression gate: decides which modules of an ordered course are reachable.

Everything here is a pure function over a module list. Callers pass the last
known (cached) snapshot; no decision ever waits on the network.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence, Union

from coursegate.gating.types import Module, Role


class ModuleStatus(str, Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    COMPLETED = "completed"
    RETAKE_REQUIRED = "retake_required"


def _is_admin(role: Union[Role, str, None]) -> bool:
    if role is None:
        return False
    value = role.value if isinstance(role, Role) else str(role)
    return value.lower() == Role.ADMIN.value


def meets_threshold(module: Module) -> bool:
    """True when the module's result lets the learner move past it."""
    if module.score is None or module.is_diagnostic:
        return True
    return module.score >= module.pass_threshold


def can_access(modules: Sequence[Module], index: int, role: Union[Role, str, None] = Role.STUDENT) -> bool:
    """
    Whether the module at `index` may be entered.

    The first module is always open and admins bypass the gate. Otherwise the
    previous module must be completed and, when it carries a score, that score
    must reach its pass threshold. An initial assessment is diagnostic and
    never blocks, whatever it scored.
    """
    if index < 0 or index >= len(modules):
        return False
    if index == 0:
        return True
    if _is_admin(role):
        return True
    previous = modules[index - 1]
    return bool(previous.completed) and meets_threshold(previous)


def access_map(modules: Sequence[Module], role: Union[Role, str, None] = Role.STUDENT) -> List[bool]:
    return [can_access(modules, i, role) for i in range(len(modules))]


def module_status(modules: Sequence[Module], index: int, role: Union[Role, str, None] = Role.STUDENT) -> ModuleStatus:
    if not can_access(modules, index, role):
        return ModuleStatus.LOCKED
    module = modules[index]
    if not module.completed:
        return ModuleStatus.AVAILABLE
    if not meets_threshold(module):
        return ModuleStatus.RETAKE_REQUIRED
    return ModuleStatus.COMPLETED


def next_reachable(modules: Sequence[Module], role: Union[Role, str, None] = Role.STUDENT) -> Optional[int]:
    """Index of the first module the learner can enter and still has work on."""
    for i in range(len(modules)):
        if module_status(modules, i, role) in (ModuleStatus.AVAILABLE, ModuleStatus.RETAKE_REQUIRED):
            return i
    return None
