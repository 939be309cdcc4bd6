# homeland/api/routers/categories.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.api.dependencies import require_role
from homeland.db.session import get_db
from homeland.db import crud_categories
from homeland.schemas.category import CategoryOut, CategoryWithCount

router = APIRouter()


@router.get("")
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await crud_categories.list_categories_with_counts(db)
    return {"categories": [CategoryWithCount(**c) for c in categories]}


@router.post("/seed")
async def seed_categories(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    """
    Insert (or refresh) the default categories.
    """
    categories = await crud_categories.upsert_categories(db, crud_categories.DEFAULT_CATEGORIES)
    return {
        "message": "Categories seeded",
        "categories": [CategoryOut.model_validate(c) for c in categories],
    }
