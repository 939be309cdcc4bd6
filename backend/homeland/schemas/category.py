# homeland/schemas/category.py
from typing import Optional

from pydantic import BaseModel


class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None

    model_config = {"from_attributes": True}


class CategoryWithCount(CategoryOut):
    property_count: int = 0
