"""
Group lifecycle hooks.
"""
from teamauth.core.errors import BadRequest
from teamauth.core.service import HookContext, HookParams
from teamauth.utils import get_logger


log = get_logger(__name__)


async def create_group_authorisations(context: HookContext) -> HookContext:
    """Make the creator owner of the new group."""
    user = context.params.user
    if user is None:
        raise BadRequest(f"Group {context.result['_id']} has no creator to own it")
    app = context.app
    await app.get_service("authorisations").create({
        "scope": "groups",
        "permissions": "owner",
        "context": context.service.context,
    }, HookParams(
        user=user,
        subjects=[user],
        subjects_service=app.get_service("users"),
        resource=context.result,
        resources_service=context.service,
    ))
    log.debug("Group ownership set for user %s on group %s", user["_id"], context.result["_id"])
    return context


async def remove_group_authorisations(context: HookContext) -> HookContext:
    """Revoke every membership of a removed group."""
    authorisations = context.app.get_service("authorisations")
    await authorisations.remove(context.result["_id"], HookParams(
        query={"scope": "groups"},
        user=context.params.user,
        # The group is gone, its owners go with it
        force=True,
        resource=context.result,
        resources_service=context.service,
    ))
    authorisations.forget_resource("groups", context.result["_id"])
    log.debug("Authorisations unset for group %s", context.result["_id"])
    return context
