"""
Authentication endpoints.

Registration and login create a server-side session and hand its
identifier to the client in the session cookie; the same identifier
is also returned in the body for clients that prefer a bearer header.
"""

from fastapi import APIRouter, Depends, Request, Response, status

from eventhub_api.app.core.errors import UnauthorizedError
from eventhub_api.app.core.responses import format_success
from eventhub_api.app.core.security import (
    clear_session_cookie,
    get_current_user,
    set_session_cookie,
)
from eventhub_api.app.schemas.user import SessionRead, UserCreate, UserLogin, UserRead, UserSummary
from eventhub_api.app.services.session_service import SessionService
from eventhub_api.app.services.user_service import UserService

router = APIRouter()


def _auth_payload(user: UserRead, session_id: str) -> dict:
    return {
        "user": UserSummary(id=user.id, name=user.name, email=user.email).to_api(),
        "session": SessionRead(id=session_id).to_api(),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, response: Response) -> dict:
    """Register a new user and log them in."""
    user = await UserService.create_user(payload)
    session = await SessionService.create_session(user.id)
    set_session_cookie(response, session)
    return format_success(_auth_payload(user, session.id), "User registered successfully")


@router.post("/login")
async def login(payload: UserLogin, response: Response) -> dict:
    user = await UserService.authenticate(payload.email, payload.password)
    if user is None:
        raise UnauthorizedError("Invalid email or password")
    session = await SessionService.create_session(user.id)
    set_session_cookie(response, session)
    return format_success(_auth_payload(user, session.id), "Login successful")


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    """Invalidate the current session and clear the cookie."""
    await SessionService.invalidate_session(request.state.session_id)
    clear_session_cookie(response)
    return format_success(None, "Logout successful")


@router.get("/me")
async def me(current_user: UserRead = Depends(get_current_user)) -> dict:
    return format_success({"user": current_user.to_api()})


@router.delete("/me")
async def delete_account(
    response: Response,
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    """Delete the current user.

    Owned events, attendance records and all sessions of the user are
    removed with it.
    """
    await UserService.delete_user(current_user.id)
    clear_session_cookie(response)
    return format_success(None, "Account deleted successfully")
