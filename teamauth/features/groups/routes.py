"""
Group feature routes, nested under the organisation owning the groups.
"""
from typing import Annotated, Any, Dict
from fastapi import APIRouter, Depends, status

from teamauth.core.application import Application
from teamauth.core.service import HookParams
from teamauth.features.groups.schemas import GroupCreate, GroupResponse, GroupUpdate
from teamauth.features.permissions.abilities import AbilitySet, query_for_abilities
from teamauth.features.permissions.dependencies import ensure_resource, require_service
from teamauth.features.users.dependencies import get_application, get_current_user


router = APIRouter(tags=["groups"])

GroupsAbilities = Annotated[AbilitySet, Depends(require_service("groups", nested=True))]


@router.post("/{organisation_id}/groups", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    organisation_id: str,
    group_data: GroupCreate,
    user: Annotated[Dict[str, Any], Depends(get_current_user)],
    abilities: GroupsAbilities,
    app: Annotated[Application, Depends(get_application)]
):
    """Create a group in an organisation (managers and owners), the creator owns it."""
    ensure_resource(abilities, "create", "groups", context=organisation_id)
    groups = app.get_service("groups", {"_id": organisation_id})
    return await groups.create(group_data.model_dump(exclude_none=True), HookParams(user=user))


@router.get("/{organisation_id}/groups", response_model=list[GroupResponse])
async def list_groups(
    organisation_id: str,
    abilities: GroupsAbilities,
    app: Annotated[Application, Depends(get_application)]
):
    """List the groups of an organisation the caller belongs to."""
    query = query_for_abilities(abilities, "read", "groups")
    if query is None:
        return []
    return await app.get_service("groups", {"_id": organisation_id}).find(query)


@router.get("/{organisation_id}/groups/{group_id}", response_model=GroupResponse)
async def get_group(
    organisation_id: str,
    group_id: str,
    abilities: GroupsAbilities,
    app: Annotated[Application, Depends(get_application)]
):
    group = await app.get_service("groups", {"_id": organisation_id}).get(group_id)
    ensure_resource(abilities, "read", "groups", context=organisation_id, resource=group)
    return group


@router.patch("/{organisation_id}/groups/{group_id}", response_model=GroupResponse)
async def update_group(
    organisation_id: str,
    group_id: str,
    update_data: GroupUpdate,
    abilities: GroupsAbilities,
    app: Annotated[Application, Depends(get_application)]
):
    groups = app.get_service("groups", {"_id": organisation_id})
    group = await groups.get(group_id)
    ensure_resource(abilities, "update", "groups", context=organisation_id, resource=group)
    return await groups.patch(group_id, update_data.model_dump(exclude_unset=True))


@router.delete("/{organisation_id}/groups/{group_id}", response_model=GroupResponse)
async def delete_group(
    organisation_id: str,
    group_id: str,
    user: Annotated[Dict[str, Any], Depends(get_current_user)],
    abilities: GroupsAbilities,
    app: Annotated[Application, Depends(get_application)]
):
    """Delete a group (owners only), its authorisations are revoked."""
    groups = app.get_service("groups", {"_id": organisation_id})
    group = await groups.get(group_id)
    ensure_resource(abilities, "remove", "groups", context=organisation_id, resource=group)
    return await groups.remove(group_id, HookParams(user=user))
