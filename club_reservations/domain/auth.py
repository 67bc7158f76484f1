"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import List, Optional

FRONT_DESK_ROLES = {"admin", "host"}


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    disabled: bool = False

    class Config:
        from_attributes = True

    def is_front_desk(self) -> bool:
        """Front-desk staff may check guests in and out"""
        return bool(FRONT_DESK_ROLES.intersection(self.roles))


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
