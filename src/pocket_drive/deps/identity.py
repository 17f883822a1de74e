"""Request identity.

The acting user is established upstream and forwarded in the X-User header.
Its format is opaque here: it is only ever compared for equality.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Path


async def get_current_user(
    x_user: Annotated[Optional[str], Header(alias="X-User")] = None,
) -> str:
    if x_user is None or not x_user.strip():
        raise HTTPException(status_code=401, detail="Missing X-User header")
    return x_user.strip()


CurrentUserDep = Annotated[str, Depends(get_current_user)]


async def get_pocket_id(
    pocket_id: str = Path(..., description="Pocket ID"),
) -> str:
    return pocket_id


PocketIdPathDep = Annotated[str, Depends(get_pocket_id)]
