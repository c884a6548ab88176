from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from ..auth import attach_session, clear_session
from ..errors import ConflictError, UnauthorizedError
from ..passwords import hash_password, verify_password
from ..repositories import UserRepository, get_user_repository
from ..schemas import LoginRequest, OkResponse, RegisterRequest, UserEnvelope, UserOut
from ..settings import Settings, get_settings
from ..tokens import TokenCodec, get_token_codec

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and start a session. The session token is set in the `token` cookie.",
    responses={
        201: {"description": "Account created"},
        400: {"description": "Validation error"},
        409: {"description": "Email already in use"},
    },
)
def register(
    payload: RegisterRequest,
    response: Response,
    users: UserRepository = Depends(get_user_repository),
    codec: TokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
) -> UserEnvelope:
    """
    Register a new user and log them in.
    """
    if users.get_by_email(payload.email) is not None:
        raise ConflictError("Email already in use")

    user = users.create(payload.name, payload.email, hash_password(payload.password))
    attach_session(response, codec.issue(user["id"]), settings)
    logger.info("Registered user %s", user["id"])
    return UserEnvelope(user=UserOut(id=user["id"], name=user["name"], email=user["email"]))


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=UserEnvelope,
    summary="Log in",
    description="Check email and password and start a session in the `token` cookie.",
    responses={
        200: {"description": "Logged in"},
        400: {"description": "Validation error"},
        401: {"description": "Invalid credentials"},
    },
)
def login(
    payload: LoginRequest,
    response: Response,
    users: UserRepository = Depends(get_user_repository),
    codec: TokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
) -> UserEnvelope:
    """
    Log in with email and password.
    """
    user = users.get_by_email(payload.email)
    if user is None or not verify_password(payload.password, user["password_hash"]):
        logger.info("Failed login for %s", payload.email)
        raise UnauthorizedError("Invalid credentials")

    attach_session(response, codec.issue(user["id"]), settings)
    logger.info("User %s logged in", user["id"])
    return UserEnvelope(user=UserOut(id=user["id"], name=user["name"], email=user["email"]))


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=OkResponse,
    summary="Log out",
    description=(
        "Clear the session cookie. Tokens are not revocable: a copy of the token "
        "kept elsewhere stays valid until it expires."
    ),
)
def logout(response: Response, settings: Settings = Depends(get_settings)) -> OkResponse:
    clear_session(response, settings)
    logger.info("Session cookie cleared")
    return OkResponse()
