"""Alert endpoints. Reads are public; writes and generation require an admin."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.alerts import service
from arcticcare.alerts.schemas import (
    AlertCreateRequest,
    AlertDetailResponse,
    AlertGenerateResponse,
    AlertListResponse,
    AlertMutationResponse,
    AlertResponse,
    AlertUpdateRequest,
)
from arcticcare.auth.dependencies import require_admin
from arcticcare.database import get_session
from arcticcare.db.models import Alert, User

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


def _listing(alerts: list[Alert]) -> AlertListResponse:
    return AlertListResponse(alerts=[AlertResponse.model_validate(a) for a in alerts])


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    type: str | None = None,  # noqa: A002
    region: str | None = None,
    include_expired: bool = Query(False, alias="includeExpired"),
    db: AsyncSession = Depends(get_session),
):
    """Live alerts by default; ``includeExpired=true`` lists everything."""
    return _listing(await service.list_alerts(db, type=type, region=region, include_expired=include_expired))


@router.get("/type/critical", response_model=AlertListResponse)
async def critical_alerts(db: AsyncSession = Depends(get_session)):
    return _listing(await service.critical_alerts(db))


@router.get("/region/{region}", response_model=AlertListResponse)
async def alerts_for_region(region: str, db: AsyncSession = Depends(get_session)):
    return _listing(await service.alerts_for_region(db, region))


@router.get("/{alert_id}", response_model=AlertDetailResponse)
async def get_alert(alert_id: int, db: AsyncSession = Depends(get_session)):
    return AlertDetailResponse(alert=AlertResponse.model_validate(await service.get_alert(db, alert_id)))


@router.post("/generate-from-issues", response_model=AlertGenerateResponse)
async def generate_from_issues(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """One critical alert per unresolved critical issue not yet covered by a live alert."""
    alerts = await service.generate_from_issues(db)
    await db.commit()
    return AlertGenerateResponse(
        message=f"{len(alerts)} alertas gerados a partir de ocorrências críticas",
        alerts=[AlertResponse.model_validate(a) for a in alerts],
    )


@router.post("", response_model=AlertMutationResponse, status_code=201)
async def create_alert(
    body: AlertCreateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    alert = await service.create_alert(db, **body.model_dump())
    await db.commit()
    return AlertMutationResponse(message="Alerta criado com sucesso!", alert=AlertResponse.model_validate(alert))


@router.put("/{alert_id}", response_model=AlertMutationResponse)
async def update_alert(
    alert_id: int,
    body: AlertUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    alert = await service.update_alert(db, alert_id, body.model_dump(exclude_unset=True))
    await db.commit()
    return AlertMutationResponse(message="Alerta atualizado!", alert=AlertResponse.model_validate(alert))


@router.post("/{alert_id}/deactivate", response_model=AlertMutationResponse)
async def deactivate_alert(
    alert_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    alert = await service.deactivate_alert(db, alert_id)
    await db.commit()
    return AlertMutationResponse(message="Alerta desativado!", alert=AlertResponse.model_validate(alert))


@router.delete("/{alert_id}")
async def delete_alert(
    alert_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    await service.delete_alert(db, alert_id)
    await db.commit()
    return {"message": "Alerta excluído com sucesso!"}
