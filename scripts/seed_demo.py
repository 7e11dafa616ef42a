"""
Seed script to populate a demo tenant.

Creates, through the regular services and their cascades:
- Two users, each with a private organisation
- A shared organisation owned by the first user, the second one as member
- A group in the shared organisation
- A bearer token per user, signed with JWT_SECRET

Usage:
    uv run python -m scripts.seed_demo
"""
import asyncio

from teamauth.core import config
from teamauth.core.service import HookParams
from teamauth.features.users.auth import create_token
from teamauth.services import create_application
from teamauth.utils import get_logger


log = get_logger(__name__)


DEMO_USERS = ["Alice", "Bob"]
DEMO_ORGANISATION = {"name": "Demo", "description": "Shared demo organisation"}
DEMO_GROUP = {"name": "Demo team"}


async def seed(app):
    users_service = app.get_service("users")
    users = [await users_service.create({"name": name}) for name in DEMO_USERS]
    owner, member = users
    log.info(f"Created users {', '.join(user['_id'] for user in users)}")

    organisations = app.get_service("organisations")
    organisation = await organisations.create(dict(DEMO_ORGANISATION), HookParams(user=owner))
    log.info(f"Created organisation '{organisation['name']}' ({organisation['_id']})")

    await app.get_service("authorisations").create(
        {"scope": "organisations", "permissions": "member"},
        HookParams(
            user=owner,
            subjects=[member],
            subjects_service=users_service,
            resource=organisation,
            resources_service=organisations,
        )
    )
    group = await app.get_service("groups", organisation).create(dict(DEMO_GROUP), HookParams(user=owner))
    log.info(f"Created group '{group['name']}' ({group['_id']})")
    return users


async def main():
    """Main function to seed the demo tenant."""
    log.info("Starting demo seeding...")
    app = create_application()
    await app.setup()
    try:
        users = await seed(app)
        log.info("Demo seeding completed successfully!")
        if config.JWT_SECRET:
            log.info("")
            log.info("Bearer tokens:")
            for user in users:
                log.info(f"  - {user['name']}: {create_token(user['_id'])}")
    except Exception as e:
        log.error(f"Error seeding demo: {e}", exc_info=True)
        raise
    finally:
        await app.close()


if __name__ == "__main__":
    asyncio.run(main())
