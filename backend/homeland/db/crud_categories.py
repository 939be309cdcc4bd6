# homeland/db/crud_categories.py
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.db.models import Category, Property

DEFAULT_CATEGORIES = [
    {"name": "Airbnb", "description": "Home rentals and private accommodations", "icon": "🏠"},
    {"name": "Hotels", "description": "Professional hotel accommodations", "icon": "🏨"},
    {"name": "Villas", "description": "Luxury villa rentals", "icon": "🏡"},
    {"name": "Bungalow", "description": "Cozy bungalow accommodations", "icon": "🏘️"},
    {"name": "Attractions", "description": "Tourist attractions and experiences", "icon": "🎯"},
]


async def get_category(db: AsyncSession, category_id: int) -> Optional[Category]:
    res = await db.execute(select(Category).where(Category.id == category_id))
    return res.scalar_one_or_none()


async def list_categories_with_counts(db: AsyncSession) -> List[Dict[str, Any]]:
    """
    All categories ordered by name, each with its number of properties.
    """
    stmt = (
        select(Category, func.count(Property.id).label("property_count"))
        .outerjoin(Property, Property.category_id == Category.id)
        .group_by(Category.id)
        .order_by(Category.name.asc())
    )
    rows = (await db.execute(stmt)).all()
    return [
        {
            "id": c.id,
            "name": c.name,
            "description": c.description,
            "icon": c.icon,
            "property_count": int(n),
        }
        for c, n in rows
    ]


async def upsert_categories(db: AsyncSession, categories: List[Dict[str, Any]]) -> List[Category]:
    """
    Insert or update categories keyed by name.
    """
    for data in categories:
        res = await db.execute(select(Category).where(Category.name == data["name"]))
        existing = res.scalar_one_or_none()
        if existing:
            existing.description = data.get("description")
            existing.icon = data.get("icon")
            db.add(existing)
        else:
            db.add(Category(**data))
    await db.commit()
    res = await db.execute(select(Category).order_by(Category.name.asc()))
    return list(res.scalars().all())
