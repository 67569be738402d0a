from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AuthTokenPayload(BaseModel):
    sub: str
    role: str = "student"
    exp: Optional[datetime] = None
