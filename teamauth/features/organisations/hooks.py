"""
Organisation lifecycle cascades.

Creation: database, then nested services bound to it, then ownership of the creator.
Removal: group authorisations, then organisation authorisations, then database.
"""
import asyncio

from teamauth.core.errors import BadRequest
from teamauth.core.service import HookContext, HookParams
from teamauth.features.authorisations.cascade import Cascade
from teamauth.utils import get_logger


log = get_logger(__name__)


async def create_organisation_database(context: HookContext) -> HookContext:
    organisation = context.result
    # Ensures the database exists, a retried cascade finds it already there
    await context.app.get_service("databases").create(
        {"name": str(organisation["_id"])}, HookParams(user=context.params.user)
    )
    log.debug("DB created for organisation %s", organisation["name"])
    return context


async def create_organisation_services(context: HookContext) -> HookContext:
    organisation = context.result
    database = context.app.get_service("databases").database(str(organisation["_id"]))
    context.service.create_organisation_services(organisation, database)
    return context


async def create_organisation_authorisations(context: HookContext) -> HookContext:
    """Make the creating user owner of the organisation."""
    app = context.app
    user = context.params.user
    if user is None:
        raise BadRequest(f"Organisation {context.result['_id']} has no creator to own it")
    await app.get_service("authorisations").create({
        "scope": "organisations",
        "permissions": "owner",  # Owner by default
    }, HookParams(
        user=user,
        # Because we already have subject/resource set it as objects to avoid populating
        subjects=[user],
        subjects_service=app.get_service("users"),
        resource=context.result,
        resources_service=context.service,
    ))
    log.debug("Organisation ownership set for user %s", user["_id"])
    return context


async def remove_groups_authorisations(context: HookContext) -> HookContext:
    """Revoke every membership of every group of the organisation."""
    app = context.app
    organisation = context.result
    authorisations = app.get_service("authorisations")
    groups_service = app.get_service("groups", organisation)
    groups = await groups_service.find()
    await asyncio.gather(*(
        authorisations.remove(group["_id"], HookParams(
            query={"scope": "groups"},
            user=context.params.user,
            # The organisation is going away, its groups lose their owners too
            force=True,
            resource=group,
            resources_service=groups_service,
        ))
        for group in groups
    ))
    log.debug("Authorisations unset on groups for organisation %s", organisation["_id"])
    return context


async def remove_organisation_authorisations(context: HookContext) -> HookContext:
    organisation = context.result
    authorisations = context.app.get_service("authorisations")
    await authorisations.remove(str(organisation["_id"]), HookParams(
        query={"scope": "organisations"},
        user=context.params.user,
        force=True,
        resource=organisation,
        resources_service=context.service,
    ))
    # Group locks are taken again while members leave the organisation
    for group in await context.app.get_service("groups", organisation).find():
        authorisations.forget_resource("groups", group["_id"])
    authorisations.forget_resource("organisations", str(organisation["_id"]))
    log.debug("Authorisations unset for organisation %s", organisation["_id"])
    return context


async def remove_organisation_database(context: HookContext) -> HookContext:
    organisation = context.result
    await context.app.get_service("databases").remove(
        str(organisation["_id"]), HookParams(user=context.params.user)
    )
    log.debug("DB removed for organisation %s", organisation["name"])
    context.service.remove_organisation_services(organisation)
    return context


organisation_created = Cascade("organisation created", [
    create_organisation_database,
    create_organisation_services,
    create_organisation_authorisations,
])

organisation_removed = Cascade("organisation removed", [
    remove_groups_authorisations,
    remove_organisation_authorisations,
    remove_organisation_database,
])
