"""
Authorisations service.

Grants, changes and revokes roles of subjects on resources. Mutations on a
given resource are serialized, and the before hooks (the last owner guard)
run in the same transaction as the write so that their checks still hold
when it commits.
"""
import asyncio
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teamauth.core.errors import BadRequest
from teamauth.core.service import HookContext, HookParams, SQLService
from teamauth.features.authorisations.models import Authorisation
from teamauth.features.permissions.roles import Role, role_of
from teamauth.features.permissions.schemas import Membership, Subject, TagRef
from teamauth.utils import get_logger


log = get_logger(__name__)

SCOPES = ("organisations", "groups")


class AuthorisationsService(SQLService):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(Authorisation, session_factory)
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    async def count_owners(
        self,
        scope: str,
        resource_id: str,
        subject_ids: Optional[Iterable[str]] = None,
        session: Optional[AsyncSession] = None
    ) -> int:
        """
        Count owner authorisations on a resource, optionally among some subjects.

        Within a transaction the owner rows are locked until it ends, on
        backends supporting row locks.
        """
        stmt = select(Authorisation.id).where(
            Authorisation.scope == scope,
            Authorisation.resource_id == resource_id,
            Authorisation.permissions == Role.owner.name,
        )
        if subject_ids is not None:
            stmt = stmt.where(Authorisation.subject_id.in_(list(subject_ids)))
        if session is not None:
            result = await session.execute(stmt.with_for_update())
            return len(result.all())
        async with self.session_factory() as db:
            result = await db.execute(select(func.count()).select_from(stmt.subquery()))
            return result.scalar_one()

    async def load_subject(self, user: Optional[Dict[str, Any]]) -> Optional[Subject]:
        """Build the subject of a user document from its authorisations."""
        if user is None:
            return None
        async with self.session_factory() as db:
            result = await db.execute(
                select(Authorisation).where(Authorisation.subject_id == user["_id"]).order_by(Authorisation.created_at)
            )
            authorisations = result.scalars().all()

        names: Dict[str, str] = {}
        organisation_ids = [a.resource_id for a in authorisations if a.scope == "organisations"]
        if organisation_ids and self.app is not None and self.app.has_service("organisations"):
            organisations = await self.app.get_service("organisations").find({"_id": {"$in": organisation_ids}})
            names = {organisation["_id"]: organisation["name"] for organisation in organisations}

        memberships: Dict[str, List[Membership]] = {scope: [] for scope in SCOPES}
        for authorisation in authorisations:
            if authorisation.scope not in memberships:
                continue
            memberships[authorisation.scope].append(Membership(
                id=authorisation.resource_id,
                name=names.get(authorisation.resource_id),
                permissions=authorisation.permissions,
                context=authorisation.context,
            ))
        return Subject(
            id=user["_id"],
            name=user.get("name"),
            organisations=memberships["organisations"],
            groups=memberships["groups"],
            tags=[TagRef(**tag) for tag in user.get("tags") or []],
        )

    # ------------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------------

    def _lock(self, scope: Optional[str], resource_id: str) -> asyncio.Lock:
        return self._locks[(scope or "", resource_id)]

    def forget_resource(self, scope: str, resource_id: str) -> None:
        """Drop the lock of a removed resource, unless a mutation still holds it."""
        lock = self._locks.get((scope, resource_id))
        if lock is not None and not lock.locked():
            del self._locks[(scope, resource_id)]

    async def _populate_subjects(self, scope: str, resource_id: str, params: HookParams) -> None:
        # Without explicit subjects a removal targets every subject of the resource
        if params.subjects is not None:
            return
        records = await self.find({"scope": scope, "resource": resource_id})
        subject_ids = [record["subject_id"] for record in records]
        if params.subjects_service is None and self.app is not None and self.app.has_service("users"):
            params.subjects_service = self.app.get_service("users")
        subjects = []
        if params.subjects_service is not None and subject_ids:
            subjects = await params.subjects_service.find({"_id": {"$in": subject_ids}})
        # Subjects already deleted are still referenced by their records
        found = {subject["_id"] for subject in subjects}
        params.subjects = subjects + [{"_id": subject_id} for subject_id in subject_ids if subject_id not in found]

    async def _transaction(self, context: HookContext, write) -> Any:
        async with self.session_factory() as db:
            async with db.begin():
                context.session = db
                try:
                    await self.run_hooks("before", context)
                    context.result = await write(db, context)
                finally:
                    context.session = None
        await self.run_hooks("after", context)
        return context.result

    async def create(self, data: Dict[str, Any], params: Optional[HookParams] = None) -> List[Dict[str, Any]]:
        """
        Grant a role on `params.resource` to every subject of `params.subjects`.

        Existing authorisations of these subjects on the resource are updated.
        """
        params = params or HookParams()
        scope = data.get("scope")
        if scope not in SCOPES:
            raise BadRequest(f"Unknown authorisation scope {scope!r}")
        if role_of(data.get("permissions")) is None:
            raise BadRequest(f"Unknown role {data.get('permissions')!r}")
        if not params.resource or not params.subjects:
            raise BadRequest("Authorisations require a resource and subjects")

        context = self._context("create", params, data=data)
        async with self._lock(scope, params.resource["_id"]):
            return await self._transaction(context, self._write_authorisations)

    async def _write_authorisations(self, db: AsyncSession, context: HookContext) -> List[Dict[str, Any]]:
        params = context.params
        scope = context.data["scope"]
        permissions = context.data["permissions"]
        resource_id = params.resource["_id"]
        resource_context = context.data.get("context") or (params.resources_service.context if params.resources_service else None)
        subjects_service = params.subjects_service.path if params.subjects_service and params.subjects_service.path else "users"

        authorisations = []
        for subject in params.subjects:
            result = await db.execute(select(Authorisation).where(
                Authorisation.subject_id == subject["_id"],
                Authorisation.resource_id == resource_id,
                Authorisation.scope == scope,
            ))
            authorisation = result.scalar_one_or_none()
            if authorisation is None:
                authorisation = Authorisation(
                    subject_id=subject["_id"],
                    subjects_service=subjects_service,
                    resource_id=resource_id,
                    scope=scope,
                    permissions=permissions,
                    context=resource_context,
                )
                db.add(authorisation)
            else:
                authorisation.permissions = permissions
            authorisations.append(authorisation)
        await db.flush()
        for authorisation in authorisations:
            await db.refresh(authorisation)
        log.debug("Set %s permissions on %s %s for %d subjects", permissions, scope, resource_id, len(authorisations))
        return [authorisation.to_document() for authorisation in authorisations]

    async def remove(self, id: str, params: Optional[HookParams] = None) -> List[Dict[str, Any]]:
        """
        Revoke the authorisations of `params.subjects` on resource `id`.

        The scope comes from `params.query["scope"]`, all subjects of the
        resource are targeted when none are given.
        """
        params = params or HookParams()
        scope = params.query.get("scope")
        if scope not in SCOPES:
            raise BadRequest(f"Unknown authorisation scope {scope!r}")
        if params.resource is None:
            params.resource = {"_id": id}

        context = self._context("remove", params, id=id)
        async with self._lock(scope, id):
            await self._populate_subjects(scope, id, params)
            return await self._transaction(context, self._delete_authorisations)

    async def _delete_authorisations(self, db: AsyncSession, context: HookContext) -> List[Dict[str, Any]]:
        scope = context.params.query["scope"]
        subject_ids = [subject["_id"] for subject in context.params.subjects or []]
        if not subject_ids:
            return []
        result = await db.execute(select(Authorisation).where(
            Authorisation.resource_id == context.id,
            Authorisation.scope == scope,
            Authorisation.subject_id.in_(subject_ids),
        ))
        removed = [authorisation.to_document() for authorisation in result.scalars().all()]
        await db.execute(delete(Authorisation).where(Authorisation.id.in_([a["_id"] for a in removed])))
        log.debug("Removed %d authorisations on %s %s", len(removed), scope, context.id)
        return removed

    async def purge_subject(self, subject_id: str) -> int:
        """Delete every authorisation of a subject that no longer exists."""
        async with self.session_factory() as db:
            result = await db.execute(delete(Authorisation).where(Authorisation.subject_id == subject_id))
            await db.commit()
        count = result.rowcount or 0
        if count:
            log.info("Purged %d authorisations of removed subject %s", count, subject_id)
        return count
