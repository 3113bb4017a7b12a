"""
Authentication dependencies for FastAPI
Provides JWT token validation and user extraction
"""

from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from course_review.core.config import config
from course_review.core.logger import logger
from course_review.models.user import Role, User


class AuthError(Exception):
    """Custom authentication error"""
    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def decode_jwt(token: str) -> dict:
    """
    Decode and validate JWT token

    Raises:
        AuthError: If token is invalid or expired
    """
    try:
        return jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired", status.HTTP_401_UNAUTHORIZED)
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise AuthError("Invalid token", status.HTTP_401_UNAUTHORIZED)


def user_from_payload(payload: dict) -> User:
    """Build the acting user from a token payload"""
    user_id = payload.get("id") or payload.get("user_id") or payload.get("sub")
    if not user_id:
        raise AuthError("Invalid token: Missing user identifier")

    roles = payload.get("roles")
    if roles is None:
        roles = [payload["role"]] if payload.get("role") else [Role.STUDENT]

    try:
        return User(id=str(user_id), email=payload.get("email"), roles=roles)
    except PydanticValidationError:
        raise AuthError("Invalid token: Unrecognised user claims")


async def get_current_user(
    authorization: Optional[str] = Header(None)
) -> User:
    """
    Dependency to extract and validate current user from JWT token.
    Raises 401 if authentication fails.
    """
    if not authorization:
        logger.warning("Authentication required: No token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected 'Bearer <token>'",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization.split(" ", 1)[1]

    try:
        user = user_from_payload(decode_jwt(token))
    except AuthError as e:
        logger.warning(f"Authentication failed: {e.message}")
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Authentication successful for user: {user.id}")
    return user


async def require_moderator(user: User = Depends(get_current_user)) -> User:
    """Dependency to require moderator or admin role"""
    if not user.is_moderator():
        logger.warning(f"Moderator access denied for user: {user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Moderator privileges required",
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency to require admin role"""
    if not user.is_admin():
        logger.warning(f"Admin access denied for user: {user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user
