"""
storefront/schemas/user.py - User profile output.
"""
from typing import Optional

from pydantic import BaseModel

from storefront.schemas.principal import Role


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: Role = "user"
