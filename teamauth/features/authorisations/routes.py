"""
Authorisation routes: grant, change and revoke roles on organisations and groups.
"""
from typing import Annotated, Any, Dict, Optional, Tuple
from fastapi import APIRouter, Depends, HTTPException, Query, status

from teamauth.core.application import Application
from teamauth.core.service import HookParams, Service
from teamauth.features.authorisations.schemas import AuthorisationCreate, AuthorisationResponse, Scope
from teamauth.features.permissions.abilities import AbilitySet
from teamauth.features.permissions.dependencies import ensure_resource, require_service
from teamauth.features.users.dependencies import get_application, get_current_user


router = APIRouter(tags=["authorisations"])


def resources_service(app: Application, scope: str, context: Optional[str]) -> Service:
    if scope == "groups":
        if not context:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Group authorisations require the organisation as context"
            )
        return app.get_service("groups", {"_id": context})
    return app.get_service(scope)


async def load_resource(app: Application, scope: str, resource_id: str, context: Optional[str]) -> Tuple[Dict[str, Any], Service]:
    service = resources_service(app, scope, context)
    return await service.get(resource_id), service


@router.post("/", response_model=list[AuthorisationResponse], status_code=status.HTTP_201_CREATED)
async def create_authorisation(
    data: AuthorisationCreate,
    user: Annotated[Dict[str, Any], Depends(get_current_user)],
    abilities: Annotated[AbilitySet, Depends(require_service("authorisations"))],
    app: Annotated[Application, Depends(get_application)]
):
    """Grant or change the role of a subject (managers and owners of the resource)."""
    ensure_resource(abilities, "create", "authorisations", resource={"resource": data.resource_id})
    resource, service = await load_resource(app, data.scope, data.resource_id, data.context)
    users = app.get_service("users")
    subject = await users.get(data.subject_id)
    return await app.get_service("authorisations").create(
        {"scope": data.scope, "permissions": data.permissions, "context": data.context},
        HookParams(
            user=user,
            subjects=[subject],
            subjects_service=users,
            resource=resource,
            resources_service=service,
        )
    )


@router.delete("/{resource_id}", response_model=list[AuthorisationResponse])
async def delete_authorisation(
    resource_id: str,
    scope: Scope,
    subject_id: str,
    user: Annotated[Dict[str, Any], Depends(get_current_user)],
    abilities: Annotated[AbilitySet, Depends(require_service("authorisations"))],
    app: Annotated[Application, Depends(get_application)],
    context: Annotated[Optional[str], Query()] = None
):
    """Revoke the role of a subject on a resource (managers and owners of the resource)."""
    ensure_resource(abilities, "remove", "authorisations", resource={"resource": resource_id})
    resource, service = await load_resource(app, scope, resource_id, context)
    users = app.get_service("users")
    subject = await users.get(subject_id)
    return await app.get_service("authorisations").remove(resource_id, HookParams(
        user=user,
        query={"scope": scope},
        subjects=[subject],
        subjects_service=users,
        resource=resource,
        resources_service=service,
    ))
