import hmac
import logging
from functools import wraps
from typing import Callable, TypeVar, cast

import bcrypt
from flask import current_app, request

from plantcare.constants import BASIC_AUTH_REALM
from plantcare.utils.http import error_response

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., object])


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash the provided password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def check_password(provided_password: str, stored_hash: str) -> bool:
    """Compare a clear text password with a stored bcrypt hash."""
    if not stored_hash:
        return False
    try:
        return bcrypt.checkpw(provided_password.encode("utf-8"), stored_hash.encode("utf-8"))
    except ValueError as exc:
        logger.error("Configured login password is not a valid bcrypt hash: %s", exc)
        return False


def _unauthorized():
    response = error_response("Authentication required", status=401)
    response.headers["WWW-Authenticate"] = f'Basic realm="{BASIC_AUTH_REALM}"'
    return response


def basic_auth_required(view_func: F) -> F:
    """Require HTTP basic auth against the configured login (bcrypt hash)."""

    @wraps(view_func)
    def wrapped(*args, **kwargs):
        login = current_app.config["LOGIN"]
        auth = request.authorization
        if auth is None or auth.type != "basic":
            return _unauthorized()
        user_ok = hmac.compare_digest((auth.username or "").encode("utf-8"), login.user.encode("utf-8"))
        if not (check_password(auth.password or "", login.password) and user_ok):
            logger.warning("Failed basic auth for user %r from %s", auth.username, request.remote_addr)
            return _unauthorized()
        return view_func(*args, **kwargs)

    return cast(F, wrapped)
