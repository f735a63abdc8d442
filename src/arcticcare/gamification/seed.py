"""Badge seed data: the launch badge set."""

from __future__ import annotations

import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.db.models import Badge

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    {
        "name": "Primeiro Reporte",
        "description": "Reportou sua primeira issue ambiental",
        "icon": "🌱",
        "requirement": {"issues": 1},
        "points": 10,
        "category": "reports",
    },
    {
        "name": "Guardião Verde",
        "description": "Reportou 10 issues ambientais",
        "icon": "🌲",
        "requirement": {"issues": 10},
        "points": 50,
        "category": "reports",
    },
    {
        "name": "Sentinela",
        "description": "Confirmou 20 issues de outros usuários",
        "icon": "👁️",
        "requirement": {"confirms": 20},
        "points": 30,
        "category": "community",
    },
    {
        "name": "Colaborador Ativo",
        "description": "Fez 50 comentários em issues",
        "icon": "💬",
        "requirement": {"comments": 50},
        "points": 40,
        "category": "community",
    },
    {
        "name": "Defensor do Planeta",
        "description": "Acumulou 500 pontos",
        "icon": "🌍",
        "requirement": {"points": 500},
        "points": 100,
        "category": "general",
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Insert missing seed badges by name. Existing rows are left untouched.

    Returns number of badges inserted.
    """
    result = await db.execute(select(Badge.name))
    existing = set(result.scalars())

    inserted = 0
    for badge_data in BADGE_SEED_DATA:
        if badge_data["name"] in existing:
            continue
        db.add(Badge(**badge_data))
        inserted += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", inserted)
    return inserted
