from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

class HumanIn(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    friend_ids: list[UUID] = []

class HumanUpdateIn(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    # omitted keeps the current friends, [] clears them
    friend_ids: Optional[list[UUID]] = None

class HumanOut(BaseModel):
    id: UUID
    name: str

    class Config:
        from_attributes = True

class HumanDetailOut(HumanOut):
    friends: list[HumanOut] = []
