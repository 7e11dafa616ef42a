"""
Service wiring.

Registers the services of the application with their lifecycle hooks:
- databases: provisioning of organisation databases
- users: creating a user creates its private organisation
- organisations: database, nested services and ownership follow each organisation
- authorisations: last owner guard, cleanup when subjects leave an organisation
"""
from typing import Optional

from teamauth.core.application import Application
from teamauth.core.service import SQLService
from teamauth.features.authorisations.hooks import (
    iff_scope,
    prevent_removing_last_owner,
    remove_organisation_memberships,
)
from teamauth.features.authorisations.service import AuthorisationsService
from teamauth.features.databases.service import DatabasesService
from teamauth.features.organisations.hooks import organisation_created, organisation_removed
from teamauth.features.organisations.service import OrganisationsService
from teamauth.features.permissions.abilities import AbilityEngine
from teamauth.features.users.hooks import prevent_removing_sole_owner, user_created, user_removed
from teamauth.features.users.models import User
from teamauth.utils import get_logger


log = get_logger(__name__)


def configure(app: Application) -> Application:
    log.info("Configuring services")
    app.use("databases", DatabasesService(app.tenant_database_url))

    users = app.use("users", SQLService(User, app.session_factory))
    users.add_hooks("before", "remove", prevent_removing_sole_owner)
    users.add_hooks("after", "create", user_created)
    users.add_hooks("after", "remove", user_removed)

    organisations = app.use("organisations", OrganisationsService(app.session_factory))
    organisations.add_hooks("after", "create", organisation_created)
    organisations.add_hooks("after", "remove", organisation_removed)

    authorisations = app.use("authorisations", AuthorisationsService(app.session_factory))
    for method in ("create", "remove"):
        authorisations.add_hooks(
            "before", method,
            prevent_removing_last_owner("organisations"),
            prevent_removing_last_owner("groups"),
        )
    authorisations.add_hooks("after", "remove", iff_scope("organisations", remove_organisation_memberships))
    return app


def create_application(
    database_url: Optional[str] = None,
    tenant_database_url: Optional[str] = None,
    abilities: Optional[AbilityEngine] = None
) -> Application:
    """
    Build a configured application, call `await app.setup()` before use.

    Usage:
        app = create_application("sqlite+aiosqlite:///./data.db")
        await app.setup()
    """
    return configure(Application(database_url, tenant_database_url, abilities))
