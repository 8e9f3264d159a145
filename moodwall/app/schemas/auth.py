from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, EmailStr, StringConstraints

Nickname = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]


class RegisterRequest(BaseModel):
    nickname: Nickname
    email: EmailStr | None = None


class SessionInfo(BaseModel):
    user_id: int
    nickname: str
    token: str
    expires_at: datetime
