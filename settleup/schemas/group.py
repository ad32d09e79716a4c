from pydantic import BaseModel, ConfigDict, Field
from typing import List

class GroupCreate(BaseModel):
    name: str = Field(min_length=1)
    created_by: int
    members: List[int] = []

class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_by: int

class GroupMemberAdd(BaseModel):
    user_id: int

class GroupMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    group_id: int
