"""
User feature routes.
"""
from typing import Annotated, Any, Dict, Optional
from fastapi import APIRouter, Depends, Request, status

from teamauth.core import config
from teamauth.core.application import Application
from teamauth.core.service import HookParams
from teamauth.features.permissions.abilities import AbilitySet
from teamauth.features.permissions.dependencies import ensure_resource, get_abilities, require_service
from teamauth.features.users.dependencies import get_application, get_current_user, get_optional_user
from teamauth.features.users.schemas import UserCreate, UserResponse, UserUpdate
from teamauth.limiter import limiter


router = APIRouter(tags=["users"])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(config.RATE_LIMIT)
async def create_user(
    request: Request,
    user_data: UserCreate,
    abilities: Annotated[AbilitySet, Depends(require_service("users"))],
    app: Annotated[Application, Depends(get_application)]
):
    """Register a new user, its private organisation is created with it."""
    ensure_resource(abilities, "create", "users")
    return await app.get_service("users").create(user_data.model_dump(exclude_none=True))


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    user: Annotated[Dict[str, Any], Depends(get_current_user)]
):
    """Get current authenticated user's profile."""
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_by_id(
    user_id: str,
    abilities: Annotated[AbilitySet, Depends(get_abilities)],
    app: Annotated[Application, Depends(get_application)]
):
    """Get a user profile by ID."""
    user = await app.get_service("users").get(user_id)
    ensure_resource(abilities, "read", "users", resource=user)
    return user


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    update_data: UserUpdate,
    abilities: Annotated[AbilitySet, Depends(get_abilities)],
    app: Annotated[Application, Depends(get_application)]
):
    """Update a user profile (the user only)."""
    users = app.get_service("users")
    user = await users.get(user_id)
    ensure_resource(abilities, "update", "users", resource=user)
    return await users.patch(user_id, update_data.model_dump(exclude_unset=True, by_alias=True))


@router.delete("/{user_id}", response_model=UserResponse)
async def delete_user(
    user_id: str,
    abilities: Annotated[AbilitySet, Depends(get_abilities)],
    current_user: Annotated[Optional[Dict[str, Any]], Depends(get_optional_user)],
    app: Annotated[Application, Depends(get_application)]
):
    """Delete a user account (the user only), its private organisation goes with it."""
    users = app.get_service("users")
    user = await users.get(user_id)
    ensure_resource(abilities, "remove", "users", resource=user)
    return await users.remove(user_id, HookParams(user=current_user))
