"""
Authorisation hooks: last owner guard and cleanup when subjects leave an organisation.
"""
import asyncio
from typing import Callable

from teamauth.core.errors import Forbidden
from teamauth.core.service import Hook, HookContext, HookParams
from teamauth.features.authorisations.cascade import Cascade
from teamauth.features.permissions.roles import Role, role_of
from teamauth.features.tags.models import is_tag_equal
from teamauth.utils import get_logger


log = get_logger(__name__)


def prevent_removing_last_owner(resource_scope: str) -> Hook:
    """
    Before hook refusing any change that would leave a resource without owner.

    Skipped when `params.force` is set or when the change grants ownership.
    """
    async def guard(context: HookContext) -> HookContext:
        params = context.params
        # By pass check ?
        if params.force:
            return context
        data = context.data or {}
        scope = data.get("scope") or params.query.get("scope")
        granted = data.get("permissions") or params.query.get("permissions")
        # Upgrades never remove an owner
        if granted is not None and role_of(granted) == Role.owner:
            return context

        resource = params.resource
        if scope != resource_scope or not resource or not resource.get("_id"):
            return context

        service = context.service
        owners = await service.count_owners(resource_scope, resource["_id"], session=context.session)
        subject_ids = [subject["_id"] for subject in params.subjects or []]
        removed_owners = await service.count_owners(
            resource_scope, resource["_id"], subject_ids=subject_ids, session=context.session
        ) if subject_ids else 0
        # If none remains stop
        if removed_owners > 0 and removed_owners >= owners:
            resource_name = resource.get("name") or str(resource["_id"])
            log.debug("Cannot remove the last owner of resource %s", resource_name)
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

    guard.__name__ = f"prevent_removing_last_{resource_scope}_owner"
    return guard


async def remove_organisation_groups_authorisations(context: HookContext) -> HookContext:
    """Revoke the group memberships of the subjects in every group of the organisation."""
    app = context.app
    authorisations = app.get_service("authorisations")
    organisation = context.params.resource
    groups_service = app.get_service("groups", organisation)
    groups = await groups_service.find()
    await asyncio.gather(*(
        authorisations.remove(group["_id"], HookParams(
            query={"scope": "groups"},
            user=context.params.user,
            force=context.params.force,
            subjects=context.params.subjects,
            subjects_service=context.params.subjects_service,
            resource=group,
            resources_service=groups_service,
        ))
        for group in groups
    ))
    log.debug("Authorisations unset on %d groups for organisation %s", len(groups), organisation["_id"])
    return context


async def remove_organisation_tags_authorisations(context: HookContext) -> HookContext:
    """Detach the organisation tags from the subjects leaving it."""
    organisation = context.params.resource
    subjects = context.params.subjects or []
    subjects_service = context.params.subjects_service
    if not subjects or subjects_service is None:
        return context
    organisation_tags = await context.app.get_service("tags", organisation).find()

    updates = []
    for subject in subjects:
        tags = subject.get("tags") or []
        from_organisation = [tag for tag in tags if any(is_tag_equal(tag, known) for known in organisation_tags)]
        if from_organisation:
            kept = [tag for tag in tags if not any(is_tag_equal(tag, known) for known in organisation_tags)]
            updates.append(subjects_service.patch(subject["_id"], {"tags": kept}))
    # Perform subject updates in parallel
    await asyncio.gather(*updates)
    log.debug("Tags unset on %d subjects for organisation %s", len(updates), organisation["_id"])
    return context


remove_organisation_memberships = Cascade("subjects removed from organisation", [
    remove_organisation_groups_authorisations,
    remove_organisation_tags_authorisations,
])


def iff_scope(scope: str, hook: Callable) -> Hook:
    """Run a hook only for authorisation calls on the given scope."""
    async def scoped(context: HookContext):
        data = context.data or {}
        if (data.get("scope") or context.params.query.get("scope")) == scope:
            return await hook(context)
        return context

    scoped.__name__ = f"{getattr(hook, '__name__', hook.__class__.__name__)}_on_{scope}"
    return scoped
