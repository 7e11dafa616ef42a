"""Helpers driving the services the way the routes do."""

from typing import Any, Dict

from teamauth.core.application import Application
from teamauth.core.service import HookParams


async def create_user(app: Application, name: str) -> Dict[str, Any]:
    """Register a user, its private organisation is created with it."""
    return await app.get_service("users").create({"name": name})


async def create_organisation(app: Application, owner: Dict[str, Any], name: str) -> Dict[str, Any]:
    return await app.get_service("organisations").create({"name": name}, HookParams(user=owner))


async def create_group(app: Application, organisation: Dict[str, Any], owner: Dict[str, Any], name: str) -> Dict[str, Any]:
    return await app.get_service("groups", organisation).create({"name": name}, HookParams(user=owner))


async def authorise(
    app: Application,
    subject: Dict[str, Any],
    resource: Dict[str, Any],
    permissions: str,
    scope: str = "organisations",
    resources_service=None,
    **params: Any,
):
    """Grant a role on a resource to a subject."""
    return await app.get_service("authorisations").create(
        {"scope": scope, "permissions": permissions},
        HookParams(
            subjects=[subject],
            subjects_service=app.get_service("users"),
            resource=resource,
            resources_service=resources_service or app.get_service(scope),
            **params,
        ),
    )


async def revoke(
    app: Application,
    subject: Dict[str, Any],
    resource: Dict[str, Any],
    scope: str = "organisations",
    **params: Any,
):
    """Revoke the role of a subject on a resource."""
    return await app.get_service("authorisations").remove(
        resource["_id"],
        HookParams(
            query={"scope": scope},
            subjects=[subject],
            subjects_service=app.get_service("users"),
            resource=resource,
            **params,
        ),
    )


async def authorisations_of(app: Application, subject: Dict[str, Any]):
    return await app.get_service("authorisations").find({"subject": subject["_id"]})
