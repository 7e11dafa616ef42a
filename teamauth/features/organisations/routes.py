"""
Organisation feature routes.
"""
from typing import Annotated, Any, Dict
from fastapi import APIRouter, Depends, Request, status

from teamauth.core import config
from teamauth.core.application import Application
from teamauth.core.service import HookParams
from teamauth.features.organisations.dependencies import get_organisation_by_id
from teamauth.features.organisations.schemas import OrganisationCreate, OrganisationResponse, OrganisationUpdate
from teamauth.features.permissions.abilities import AbilitySet, query_for_abilities
from teamauth.features.permissions.dependencies import ensure_resource, require_ability, require_service
from teamauth.features.users.dependencies import get_application, get_current_user
from teamauth.limiter import limiter


router = APIRouter(tags=["organisations"])


@router.post("/", response_model=OrganisationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(config.RATE_LIMIT)
async def create_organisation(
    request: Request,
    org_data: OrganisationCreate,
    user: Annotated[Dict[str, Any], Depends(get_current_user)],
    abilities: Annotated[AbilitySet, Depends(require_ability("create", "organisations"))],
    app: Annotated[Application, Depends(get_application)]
):
    """Create a new organisation with its database, the caller becomes owner."""
    return await app.get_service("organisations").create(
        org_data.model_dump(exclude_none=True), HookParams(user=user)
    )


@router.get("/", response_model=list[OrganisationResponse])
async def list_organisations(
    abilities: Annotated[AbilitySet, Depends(require_service("organisations"))],
    app: Annotated[Application, Depends(get_application)]
):
    """List the organisations the caller can read."""
    query = query_for_abilities(abilities, "read", "organisations")
    if query is None:
        return []
    return await app.get_service("organisations").find(query)


@router.get("/{organisation_id}", response_model=OrganisationResponse)
async def get_organisation(
    organisation: Annotated[Dict[str, Any], Depends(get_organisation_by_id)],
    abilities: Annotated[AbilitySet, Depends(require_service("organisations"))]
):
    """Get organisation by ID (members only)."""
    ensure_resource(abilities, "read", "organisations", resource=organisation)
    return organisation


@router.patch("/{organisation_id}", response_model=OrganisationResponse)
async def update_organisation(
    update_data: OrganisationUpdate,
    organisation: Annotated[Dict[str, Any], Depends(get_organisation_by_id)],
    abilities: Annotated[AbilitySet, Depends(require_service("organisations"))],
    app: Annotated[Application, Depends(get_application)]
):
    """Update organisation information (managers and owners)."""
    ensure_resource(abilities, "update", "organisations", resource=organisation)
    return await app.get_service("organisations").patch(
        organisation["_id"], update_data.model_dump(exclude_unset=True)
    )


@router.delete("/{organisation_id}", response_model=OrganisationResponse)
async def delete_organisation(
    organisation: Annotated[Dict[str, Any], Depends(get_organisation_by_id)],
    user: Annotated[Dict[str, Any], Depends(get_current_user)],
    abilities: Annotated[AbilitySet, Depends(require_service("organisations"))],
    app: Annotated[Application, Depends(get_application)]
):
    """Delete an organisation with its groups, authorisations and database (owners only)."""
    ensure_resource(abilities, "remove", "organisations", resource=organisation)
    return await app.get_service("organisations").remove(organisation["_id"], HookParams(user=user))
