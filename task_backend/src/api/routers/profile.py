from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth import Identity, require_identity
from ..errors import NotFoundError
from ..models import UserEntity
from ..repositories import UserRepository, get_user_repository
from ..schemas import ProfileEnvelope, ProfileOut, ProfileUpdate

router = APIRouter(
    prefix="/me",
    tags=["profile"],
)


def _profile(user: UserEntity) -> ProfileEnvelope:
    return ProfileEnvelope(
        user=ProfileOut(
            name=user["name"],
            email=user["email"],
            created_at=user["created_at"],
            updated_at=user["updated_at"],
        )
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ProfileEnvelope,
    summary="Get profile",
    description="Return the profile of the logged-in user.",
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "User no longer exists"},
    },
)
def get_profile(
    identity: Identity = Depends(require_identity),
    users: UserRepository = Depends(get_user_repository),
) -> ProfileEnvelope:
    user = users.get(identity.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return _profile(user)


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=ProfileEnvelope,
    summary="Update profile",
    description="Change the display name of the logged-in user.",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Not authenticated"},
        404: {"description": "User no longer exists"},
    },
)
def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(require_identity),
    users: UserRepository = Depends(get_user_repository),
) -> ProfileEnvelope:
    """
    Update the logged-in user's profile. Omitted fields are left unchanged.
    """
    user = users.update(identity.user_id, payload)
    if user is None:
        raise NotFoundError("User not found")
    return _profile(user)
