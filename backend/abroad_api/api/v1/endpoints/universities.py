from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.database import get_db
from abroad_api.models import Principal, University
from abroad_api.modules.auth.dependencies import require_admin_or_superadmin
from abroad_api.schemas.content import (
    UniversityCreate,
    UniversityResponse,
    UniversityUpdate,
    item_envelope,
    list_envelope,
)
from abroad_api.services.content_service import ContentService, slugify

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_university(
    data: UniversityCreate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """The university is filed under an existing country"""
    service = ContentService(db)
    fields = data.model_dump(mode="json", exclude_none=True)
    fields.update(await service.country_reference(data.country_id))
    await service.ensure_unique(University, University.name, data.name, "University")
    fields.setdefault("slug", slugify(data.name))

    university = await service.create(University, fields, "University")
    return item_envelope(
        "university", "University created successfully", UniversityResponse.from_university(university)
    )


@router.get("/")
async def list_universities(db: AsyncSession = Depends(get_db)):
    universities = await ContentService(db).list_items(University)
    return list_envelope(
        "universities", "All universities", [UniversityResponse.from_university(u) for u in universities]
    )


@router.get("/country/{country_id}")
async def list_universities_by_country(country_id: str, db: AsyncSession = Depends(get_db)):
    service = ContentService(db)
    country = await service.country_reference(country_id)
    universities = await service.list_items(University, University.country_id == country["country_id"])
    return list_envelope(
        "universities",
        f"Universities in {country['country_name']}",
        [UniversityResponse.from_university(u) for u in universities],
    )


@router.get("/{university_id}")
async def get_university(university_id: str, db: AsyncSession = Depends(get_db)):
    university = await ContentService(db).get(University, university_id, "University")
    return item_envelope(
        "university", "University fetched successfully", UniversityResponse.from_university(university)
    )


@router.put("/{university_id}")
async def update_university(
    university_id: str,
    data: UniversityUpdate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    university = await service.get(University, university_id, "University")
    changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)

    if "name" in changes:
        await service.ensure_unique(University, University.name, changes["name"], "University",
                                    exclude_id=university.id)
    if "country_id" in changes:
        changes.update(await service.country_reference(changes["country_id"]))

    university = await service.update(university, changes)
    return item_envelope(
        "university", "University updated successfully", UniversityResponse.from_university(university)
    )


@router.delete("/{university_id}")
async def delete_university(
    university_id: str,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await ContentService(db).delete(University, university_id, "University")
    return {"success": True, "message": "University deleted successfully", "id": deleted_id}
