"""Institution authentication via the ``X-API-Key`` header."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.database import get_session
from arcticcare.db.models import Institution
from arcticcare.institutions.service import authenticate


async def get_institution(
    api_key: str | None = Header(None, alias="X-API-Key"),
    db: AsyncSession = Depends(get_session),
) -> Institution:
    """Raises 401 when the key is missing, unknown or belongs to an inactive institution."""
    if not api_key:
        raise HTTPException(status_code=401, detail="API Key não fornecida")
    institution = await authenticate(db, api_key)
    if institution is None:
        raise HTTPException(status_code=401, detail="API Key inválida")
    return institution
