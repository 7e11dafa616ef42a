"""
Organisations service and the nested services bound to each organisation database.
"""
from typing import Any, Dict, Tuple
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teamauth.core.service import HookParams, SQLService
from teamauth.features.groups.hooks import create_group_authorisations, remove_group_authorisations
from teamauth.features.groups.models import Group
from teamauth.features.members.service import MembersService
from teamauth.features.organisations.models import Organisation
from teamauth.features.storage.models import StorageObject
from teamauth.features.tags.models import Tag
from teamauth.utils import get_logger


log = get_logger(__name__)

NESTED_SERVICES: Tuple[str, ...] = ("members", "groups", "tags", "storage")


class OrganisationsService(SQLService):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(Organisation, session_factory)

    def create_organisation_services(self, organisation: Dict[str, Any], database) -> None:
        """Register the services of an organisation, bound to its database."""
        organisation_id = str(organisation["_id"])
        session_factory = database.session_factory

        members = MembersService(organisation_id)
        groups = SQLService(Group, session_factory)
        groups.add_hooks("after", "create", create_group_authorisations)
        groups.add_hooks("after", "remove", remove_group_authorisations)
        tags = SQLService(Tag, session_factory)
        storage = SQLService(StorageObject, session_factory)

        for name, service in zip(NESTED_SERVICES, (members, groups, tags, storage)):
            service.context = organisation_id
            self.app.use(f"{organisation_id}/{name}", service)
        log.debug("Services created for organisation %s", organisation_id)

    def remove_organisation_services(self, organisation: Dict[str, Any]) -> None:
        organisation_id = str(organisation["_id"])
        for name in NESTED_SERVICES:
            self.app.unuse(f"{organisation_id}/{name}")
        log.debug("Services removed for organisation %s", organisation_id)

    async def configure_existing_organisations(self) -> int:
        """Reopen the database and services of every stored organisation."""
        databases = self.app.get_service("databases")
        organisations = await self.find()
        for organisation in organisations:
            await databases.create({"name": organisation["_id"]}, HookParams())
            self.create_organisation_services(organisation, databases.database(organisation["_id"]))
        if organisations:
            log.info("Restored services of %d organisations", len(organisations))
        return len(organisations)
