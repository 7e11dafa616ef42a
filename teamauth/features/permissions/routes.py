"""
Ability routes, exposing the rules computed for the caller.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends

from teamauth.features.permissions.abilities import AbilitySet
from teamauth.features.permissions.dependencies import get_abilities, get_subject
from teamauth.features.permissions.schemas import AbilitiesResponse, Subject


router = APIRouter(tags=["abilities"])


@router.get("/", response_model=AbilitiesResponse)
async def get_current_abilities(
    subject: Annotated[Optional[Subject], Depends(get_subject)],
    abilities: Annotated[AbilitySet, Depends(get_abilities)]
):
    """
    Get the rules of the caller, for clients mirroring the checks.

    Anonymous callers get the rules granted to everyone.
    """
    return AbilitiesResponse(
        subject_id=subject.id if subject else None,
        rules=abilities.serialize(),
    )
