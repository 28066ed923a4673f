"""
Password hashing and request authentication.

Passwords are hashed with PBKDF2-HMAC-SHA256 and a random 16-byte salt
per password, stored as ``"<salt hex>$<hash hex>"``.

Requests authenticate with an opaque session identifier carried in the
session cookie (``settings.session_cookie_name``).  Non-browser clients
may send the same identifier as ``Authorization: Bearer <id>``.  The
identifier is resolved by ``SessionService``; this module only moves
it between HTTP and the service and keeps the cookie up to date.
"""

import hashlib
import hmac
import os
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .errors import UnauthorizedError
from .utils import utcnow
from ..schemas.user import UserRead
from ..services.session_service import SessionRecord, SessionService

PBKDF2_ITERATIONS = 100_000


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    Parameters
    ----------
    password : str
        The plain text password to hash.

    Returns
    -------
    str
        Salt and hash in hex, separated by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a plain password against a stored ``salt$hash`` string.

    Malformed stored values never match.  The digest comparison runs in
    constant time.
    """
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


# ---------------------------------------------------------------------------
# Session cookie helpers
# ---------------------------------------------------------------------------

def set_session_cookie(response: Response, session: SessionRecord) -> None:
    max_age = int((session.expires_at - utcnow()).total_seconds())
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.id,
        max_age=max(max_age, 0),
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    """Send a blank, already-expired session cookie."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


bearer_scheme = HTTPBearer(auto_error=False)


def read_session_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    """Return the session id from the cookie, falling back to a bearer token."""
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id and credentials is not None:
        session_id = credentials.credentials
    return session_id or None


async def get_current_user(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UserRead:
    """Dependency resolving the authenticated user of a request.

    Raises ``UnauthorizedError`` when no session identifier is present
    or when it does not resolve to a live session; in the latter case
    the error handler also clears the stale cookie.  When the session
    collaborator extended the session, a refreshed cookie is attached
    to the response.
    """
    session_id = read_session_id(request, credentials)
    if not session_id:
        raise UnauthorizedError("Unauthorized - No session found")

    session, user = await SessionService.validate_session(session_id)
    if session is None or user is None:
        raise UnauthorizedError("Unauthorized - Invalid session", clear_cookie=True)

    if session.fresh:
        set_session_cookie(response, session)
    request.state.session_id = session.id
    return user
