"""
Password hashing and cookie-session authentication.

The session cookie (Starlette ``SessionMiddleware``) only carries ``user_id``;
the user row is re-read on every request so role changes apply immediately.
"""
import logging

from fastapi import Depends, Request
from passlib.context import CryptContext

from paperbank.core.errors import AuthenticationError, AuthorizationError
from paperbank.models.orm import User
from paperbank.storage import Storage, get_storage

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def login_session(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.clear()


def get_current_user(request: Request, storage: Storage = Depends(get_storage)) -> User:
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        raise AuthenticationError("Not authenticated")
    user = storage.get_user(int(user_id))
    if user is None:
        # Stale cookie for a user that no longer exists.
        request.session.clear()
        raise AuthenticationError("Not authenticated")
    return user


def require_roles(*required: str):
    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in required:
            logger.warning(f"User {user.id} with role {user.role} denied, requires {required}")
            raise AuthorizationError(f"Forbidden: {' or '.join(required)} only")
        return user
    return checker


require_teacher = require_roles("teacher")
