"""Alert tests: severity ordering, live filter, generation from critical issues."""

from __future__ import annotations

from datetime import timedelta

import pytest

from arcticcare.alerts import service
from arcticcare.gamification.exceptions import InvalidInputError, NotFoundError
from arcticcare.issues.service import create_issue, resolve_issue
from arcticcare.time_utils import utcnow


async def _issue(db, user_id, severity="critical", category="fire", region="Centro-Oeste", description="Fogo alto"):
    issue, _ = await create_issue(
        db,
        None,
        user_id,
        title=f"Ocorrência {severity}",
        description=description,
        category=category,
        severity=severity,
        latitude=-15.78,
        longitude=-47.93,
        region=region,
    )
    return issue


class TestListing:
    @pytest.mark.asyncio
    async def test_critical_first_then_warning_then_info(self, db_session):
        await service.create_alert(db_session, "info", "Aviso", "Manutenção")
        await service.create_alert(db_session, "critical", "Enchente", "Evacuar")
        await service.create_alert(db_session, "warning", "Calor", "Hidrate-se")
        await db_session.commit()

        assert [a.type for a in await service.list_alerts(db_session)] == ["critical", "warning", "info"]

    @pytest.mark.asyncio
    async def test_expired_and_inactive_are_not_live(self, db_session):
        now = utcnow()
        live = await service.create_alert(db_session, "warning", "Vivo", "x", expires_at=now + timedelta(days=1))
        await service.create_alert(db_session, "warning", "Expirado", "x", expires_at=now - timedelta(hours=1))
        off = await service.create_alert(db_session, "critical", "Desligado", "x")
        await service.deactivate_alert(db_session, off.id)
        await db_session.commit()

        assert [a.id for a in await service.list_alerts(db_session, now=now)] == [live.id]
        assert len(await service.list_alerts(db_session, include_expired=True, now=now)) == 3
        assert await service.count_live(db_session, now=now) == 1
        assert await service.critical_alerts(db_session, now=now) == []

    @pytest.mark.asyncio
    async def test_region_filter(self, db_session):
        await service.create_alert(db_session, "info", "Norte", "x", region="Amazonas")
        await service.create_alert(db_session, "info", "Sul", "x", region="Paraná")
        await db_session.commit()

        assert [a.title for a in await service.alerts_for_region(db_session, "Amazonas")] == ["Norte"]


class TestMutations:
    @pytest.mark.asyncio
    async def test_invalid_type(self, db_session):
        with pytest.raises(InvalidInputError):
            await service.create_alert(db_session, "panic", "T", "M")

    @pytest.mark.asyncio
    async def test_update_can_clear_expiry(self, db_session):
        alert = await service.create_alert(db_session, "info", "T", "M", region="Acre", expires_at=utcnow())
        updated = await service.update_alert(db_session, alert.id, {"expires_at": None, "title": "Novo"})
        assert updated.expires_at is None
        assert updated.title == "Novo"
        assert updated.region == "Acre"

    @pytest.mark.asyncio
    async def test_delete(self, db_session):
        alert = await service.create_alert(db_session, "info", "T", "M")
        await service.delete_alert(db_session, alert.id)
        with pytest.raises(NotFoundError):
            await service.get_alert(db_session, alert.id)


class TestGenerateFromIssues:
    @pytest.mark.asyncio
    async def test_one_alert_per_unresolved_critical_issue(self, db_session, test_user):
        fire = await _issue(db_session, test_user.id)
        await _issue(db_session, test_user.id, severity="high")
        done = await _issue(db_session, test_user.id, category="flood")
        await resolve_issue(db_session, None, done.id)
        await db_session.commit()

        (alert,) = await service.generate_from_issues(db_session)
        await db_session.commit()

        assert alert.type == "critical"
        assert alert.issue_id == fire.id
        assert alert.title == "Alerta: Incêndio - Centro-Oeste"
        assert alert.message == "Ocorrência critical. Reportado por Ana Cidadã. Fogo alto"
        assert alert.region == "Centro-Oeste"

    @pytest.mark.asyncio
    async def test_does_not_duplicate_live_alerts(self, db_session, test_user):
        await _issue(db_session, test_user.id)
        await db_session.commit()

        now = utcnow()
        assert len(await service.generate_from_issues(db_session, now=now)) == 1
        await db_session.commit()
        assert await service.generate_from_issues(db_session, now=now) == []

        # Generated alerts expire after a week; the still-open issue is alerted again
        later = now + timedelta(days=8)
        assert len(await service.generate_from_issues(db_session, now=later)) == 1

    @pytest.mark.asyncio
    async def test_long_description_is_truncated(self, db_session, test_user):
        await _issue(db_session, test_user.id, region=None, description="a" * 250)
        await db_session.commit()

        (alert,) = await service.generate_from_issues(db_session)
        assert alert.title.endswith("Localização não especificada")
        assert alert.message.endswith("a" * 200 + "...")
