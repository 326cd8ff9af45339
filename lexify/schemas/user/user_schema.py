from typing import Optional

from lexify.schemas.base_schema import CamelModel


class UserSummary(CamelModel):
    id: int
    username: str
    full_name: str
    profile_pic: Optional[str] = None
    learning_language: Optional[str] = None
