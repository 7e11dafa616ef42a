"""
Ability checks for route protection.

Implements:
- Subject and ability computation per request
- FastAPI dependencies requiring service or resource abilities
"""
from typing import Annotated, Any, Dict, Optional
from fastapi import Depends, HTTPException, Request, status

from teamauth.core.application import Application
from teamauth.features.permissions.abilities import AbilitySet, has_resource_abilities, has_service_abilities
from teamauth.features.permissions.schemas import Subject
from teamauth.features.users.dependencies import get_application, get_optional_user
from teamauth.utils import get_logger


log = get_logger(__name__)


async def get_subject(
    user: Annotated[Optional[Dict[str, Any]], Depends(get_optional_user)],
    app: Annotated[Application, Depends(get_application)]
) -> Optional[Subject]:
    return await app.get_service("authorisations").load_subject(user)


async def get_abilities(
    subject: Annotated[Optional[Subject], Depends(get_subject)],
    app: Annotated[Application, Depends(get_application)]
) -> AbilitySet:
    return app.abilities.compute_abilities(subject)


def ensure_service(abilities: Optional[AbilitySet], path: str) -> None:
    if not has_service_abilities(abilities, path):
        log.debug("Service %s denied", path)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access to service {path} denied"
        )


def ensure_resource(
    abilities: Optional[AbilitySet],
    operation: str,
    resource_type: str,
    context: Optional[str] = None,
    resource: Optional[Dict[str, Any]] = None
) -> None:
    if not has_resource_abilities(abilities, operation, resource_type, context, resource):
        log.debug("Permission denied: %s on %s (context %s)", operation, resource_type, context)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission denied: {operation} on {resource_type}"
        )


def require_service(name: str, nested: bool = False):
    """
    FastAPI dependency requiring access to a service.

    Nested services are resolved against the `organisation_id` path parameter.

    Usage:
        @router.get("/{organisation_id}/groups")
        async def list_groups(abilities: AbilitySet = Depends(require_service("groups", nested=True))):
            ...
    """
    async def service_dependency(
        request: Request,
        abilities: Annotated[AbilitySet, Depends(get_abilities)]
    ) -> AbilitySet:
        path = name
        if nested:
            path = f"{request.path_params['organisation_id']}/{name}"
        ensure_service(abilities, path)
        return abilities

    return service_dependency


def require_ability(operation: str, resource_type: str):
    """
    FastAPI dependency requiring an operation on a resource type.

    Conditions are not evaluated, the check passes when some rule could
    allow the operation on an instance of the type.

    Usage:
        @router.post("/")
        async def create_organisation(abilities: AbilitySet = Depends(require_ability("create", "organisations"))):
            ...
    """
    async def ability_dependency(
        abilities: Annotated[AbilitySet, Depends(get_abilities)]
    ) -> AbilitySet:
        if not abilities.can(operation, resource_type):
            log.debug("Permission denied: %s on %s", operation, resource_type)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {operation} on {resource_type}"
            )
        return abilities

    return ability_dependency
