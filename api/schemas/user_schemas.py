from pydantic import BaseModel

from coursegate.gating.types import Role


class CurrentUser(BaseModel):
    student_id: str
    role: Role = Role.STUDENT
