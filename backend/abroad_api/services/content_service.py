"""
Content Service
===============
CRUD for the admin-managed site content (countries, universities, courses,
FAQs, testimonials, blogs). Universities, courses and FAQs copy the name of
the record they point at when created or re-pointed, so listing them never
needs a join.
"""
import re
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.exceptions import ConflictError, ResourceNotFoundError
from abroad_api.core.logging_config import logger
from abroad_api.core.types import is_valid_uuid
from abroad_api.models import Country, University


def slugify(value: str) -> str:
    """Lowercase, ASCII-only, hyphen separated"""
    value = re.sub(r"[^\w\s-]", "", value.lower(), flags=re.ASCII)
    return re.sub(r"[\s_-]+", "-", value).strip("-")


class ContentService:
    """Generic create/read/update/delete over one content model"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_items(self, model: Type, *criteria) -> List[Any]:
        query = select(model)
        if criteria:
            query = query.where(*criteria)
        result = await self.db.execute(
            query.order_by(model.priority.desc(), model.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, model: Type, item_id: str, label: str) -> Any:
        item = None
        if item_id and is_valid_uuid(item_id):
            item = await self.db.get(model, item_id)
        if item is None:
            raise ResourceNotFoundError(f"{label} not found", resource_type=label, resource_id=item_id)
        return item

    async def get_by(self, model: Type, column, value: str, label: str) -> Any:
        result = await self.db.execute(select(model).where(column == value).limit(1))
        item = result.scalars().first()
        if item is None:
            raise ResourceNotFoundError(f"{label} not found", resource_type=label, resource_id=value)
        return item

    async def ensure_unique(self, model: Type, column, value: Optional[str], label: str,
                            exclude_id: Optional[str] = None) -> None:
        if not value:
            return
        result = await self.db.execute(select(model).where(column == value).limit(1))
        existing = result.scalars().first()
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(f"{label} '{value}' already exists", field=column.key)

    async def create(self, model: Type, data: Dict[str, Any], label: str) -> Any:
        item = model(**data)
        self.db.add(item)
        await self.db.flush()
        logger.info(f"[Content] Created {label.lower()} {item.id}")
        return item

    async def update(self, item: Any, changes: Dict[str, Any]) -> Any:
        for field, value in changes.items():
            setattr(item, field, value)
        await self.db.flush()
        return item

    async def delete(self, model: Type, item_id: str, label: str) -> str:
        item = await self.get(model, item_id, label)
        await self.db.delete(item)
        await self.db.flush()
        logger.info(f"[Content] Deleted {label.lower()} {item_id}")
        return item_id

    # ==================== Reference resolution ====================

    async def country_reference(self, country_id: str) -> Dict[str, str]:
        country = await self.get(Country, country_id, "Country")
        return {"country_id": country.id, "country_name": country.name}

    async def university_reference(self, university_id: str) -> Dict[str, str]:
        university = await self.get(University, university_id, "University")
        return {
            "university_id": university.id,
            "university_name": university.name,
            "university_slug": university.slug,
        }

