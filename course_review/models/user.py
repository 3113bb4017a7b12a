"""
User model for authentication
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr


class Role(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    MODERATOR = "moderator"
    ADMIN = "admin"


class User(BaseModel):
    """User model from JWT token payload"""

    id: str
    email: Optional[EmailStr] = None
    roles: List[Role] = [Role.STUDENT]

    def is_admin(self) -> bool:
        """Check if user has admin role"""
        return Role.ADMIN in self.roles

    def is_moderator(self) -> bool:
        """Moderators and admins may remove any review"""
        return Role.MODERATOR in self.roles or self.is_admin()
