"""
User lifecycle cascades: every user owns a private organisation.
"""
from typing import Any, Dict

from teamauth.core.errors import Forbidden, NotFound
from teamauth.core.service import HookContext, HookParams
from teamauth.features.authorisations.cascade import Cascade
from teamauth.features.permissions.roles import Role
from teamauth.utils import get_logger


log = get_logger(__name__)


async def create_private_organisation(context: HookContext) -> HookContext:
    user = context.result
    # Same ID as user, fine because in another service
    await context.app.get_service("organisations").create({
        "_id": user["_id"],
        "name": user["name"],
    }, HookParams(user=user))
    log.debug("Private organisation created for user %s", user["_id"])
    return context


async def prevent_removing_sole_owner(context: HookContext) -> HookContext:
    """
    Refuse to remove a user still owning alone a resource shared with others.

    The private organisation and its groups are left out, they go away with
    the user.
    """
    if context.params.force:
        return context
    user_id = context.id
    app = context.app
    authorisations = app.get_service("authorisations")
    owned = await authorisations.find({"subject": user_id, "permissions": Role.owner.name})
    for authorisation in owned:
        if user_id in (authorisation["resource_id"], authorisation["context"]):
            continue
        owners = await authorisations.count_owners(authorisation["scope"], authorisation["resource_id"])
        if owners > 1:
            continue
        resource_name = await _resource_name(app, authorisation)
        log.debug("User %s is the last owner of resource %s", user_id, resource_name)
        raise Forbidden(
            f"You are not allowed to remove the last owner of resource {resource_name}",
            {
                "translation": {
                    "key": "CANNOT_REMOVE_LAST_OWNER",
                    "params": {"resource": resource_name},
                }
            }
        )
    return context


async def _resource_name(app, authorisation: Dict[str, Any]) -> str:
    resource_id = authorisation["resource_id"]
    parent = {"_id": authorisation["context"]} if authorisation["scope"] == "groups" else None
    if not app.has_service(authorisation["scope"], parent):
        return resource_id
    try:
        resource = await app.get_service(authorisation["scope"], parent).get(resource_id)
    except NotFound:
        return resource_id
    return resource.get("name") or resource_id


async def remove_private_organisation(context: HookContext) -> HookContext:
    user = context.result
    organisations = context.app.get_service("organisations")
    if not await organisations.find({"_id": user["_id"]}):
        log.warning("No private organisation left for user %s", user["_id"])
        return context
    await organisations.remove(user["_id"], HookParams(user=user))
    log.debug("Private organisation removed for user %s", user["_id"])
    return context


async def remove_subject_authorisations(context: HookContext) -> HookContext:
    """Drop the memberships left by the removed user, none of them is a sole ownership."""
    await context.app.get_service("authorisations").purge_subject(context.result["_id"])
    return context


user_created = Cascade("user created", [create_private_organisation])

user_removed = Cascade("user removed", [
    remove_private_organisation,
    remove_subject_authorisations,
])
