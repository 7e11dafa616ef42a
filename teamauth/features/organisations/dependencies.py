"""
Organisation-related dependency injection functions.
"""
from typing import Annotated, Any, Dict
from fastapi import Depends

from teamauth.core.application import Application
from teamauth.features.users.dependencies import get_application


async def get_organisation_by_id(
    organisation_id: str,
    app: Annotated[Application, Depends(get_application)]
) -> Dict[str, Any]:
    """
    Get organisation by ID.

    Raises:
        NotFound: if organisation not found, rendered as a 404
    """
    return await app.get_service("organisations").get(organisation_id)
