"""Decorators for authenticating API requests."""

from functools import wraps

from firebase_admin import auth
from flask import current_app, g, request

from leaguelink.errors import UnauthorizedError


def _bearer_token():
    """Return the bearer token from the Authorization header, if any."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header.split(" ", 1)[1].strip()
    return token or None


def login_required(f):
    """Reject the request unless it carries a valid Firebase ID token.

    On success the caller's user document (with ``uid``) is stored in ``g.user``.

    Usage:
    @login_required
    def protected_view():
        ...
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            raise UnauthorizedError("Not authorized, no token.")
        try:
            decoded_token = auth.verify_id_token(token)
        except (
            ValueError,
            auth.InvalidIdTokenError,
            auth.CertificateFetchError,
            auth.UserDisabledError,
        ) as e:
            current_app.logger.error(f"Auth Error: {e}")
            raise UnauthorizedError("Not authorized.") from e

        from leaguelink.user.services import UserService

        g.user = UserService.load_session_user(decoded_token)
        return f(*args, **kwargs)

    return decorated_function
