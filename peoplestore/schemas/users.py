from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_LENGTH = 72

class UserCreateIn(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=4, max_length=PASSWORD_MAX_LENGTH)
    nickname: str = Field(min_length=1, max_length=64)
    avatar_url: Optional[str] = Field(default=None, min_length=1, max_length=512)

class UserUpdateIn(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1, max_length=64)
    nickname: Optional[str] = Field(default=None, min_length=1, max_length=64)
    avatar_url: Optional[str] = Field(default=None, min_length=1, max_length=512)

class PasswordChangeIn(BaseModel):
    old_password: str
    new_password: str = Field(min_length=4, max_length=PASSWORD_MAX_LENGTH)

class UserOut(BaseModel):
    id: UUID
    username: str
    nickname: str
    avatar_url: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
