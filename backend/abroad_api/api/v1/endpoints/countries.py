from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.database import get_db
from abroad_api.models import Country, Principal
from abroad_api.modules.auth.dependencies import require_admin_or_superadmin
from abroad_api.schemas.content import (
    CountryCreate,
    CountryResponse,
    CountryUpdate,
    item_envelope,
    list_envelope,
)
from abroad_api.services.content_service import ContentService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_country(
    data: CountryCreate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    await service.ensure_unique(Country, Country.name, data.name, "Country")
    country = await service.create(Country, data.model_dump(mode="json", exclude_none=True), "Country")
    return item_envelope("country", "Country created successfully", CountryResponse.model_validate(country))


@router.get("/")
async def list_countries(db: AsyncSession = Depends(get_db)):
    countries = await ContentService(db).list_items(Country)
    return list_envelope("countries", "All countries", [CountryResponse.model_validate(c) for c in countries])


@router.get("/{country_id}")
async def get_country(country_id: str, db: AsyncSession = Depends(get_db)):
    country = await ContentService(db).get(Country, country_id, "Country")
    return item_envelope("country", "Country fetched successfully", CountryResponse.model_validate(country))


@router.put("/{country_id}")
async def update_country(
    country_id: str,
    data: CountryUpdate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    country = await service.get(Country, country_id, "Country")
    changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    await service.ensure_unique(Country, Country.name, changes.get("name"), "Country", exclude_id=country.id)
    country = await service.update(country, changes)
    return item_envelope("country", "Country updated successfully", CountryResponse.model_validate(country))


@router.delete("/{country_id}")
async def delete_country(
    country_id: str,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await ContentService(db).delete(Country, country_id, "Country")
    return {"success": True, "message": "Country deleted successfully", "id": deleted_id}
