from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.database import get_db
from abroad_api.models import Faq, Principal
from abroad_api.modules.auth.dependencies import require_admin_or_superadmin
from abroad_api.schemas.content import (
    FaqCreate,
    FaqResponse,
    FaqUpdate,
    item_envelope,
    list_envelope,
)
from abroad_api.services.content_service import ContentService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_faq(
    data: FaqCreate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """FAQs may be general or tied to one country"""
    service = ContentService(db)
    fields = data.model_dump(mode="json", exclude_none=True)
    if data.country_id:
        fields.update(await service.country_reference(data.country_id))

    faq = await service.create(Faq, fields, "FAQ")
    return item_envelope("faq", "FAQ created successfully", FaqResponse.from_faq(faq))


@router.get("/")
async def list_faqs(db: AsyncSession = Depends(get_db)):
    faqs = await ContentService(db).list_items(Faq)
    return list_envelope("faqs", "All FAQs", [FaqResponse.from_faq(f) for f in faqs])


@router.get("/country/{country_id}")
async def list_faqs_by_country(country_id: str, db: AsyncSession = Depends(get_db)):
    service = ContentService(db)
    country = await service.country_reference(country_id)
    faqs = await service.list_items(Faq, Faq.country_id == country["country_id"])
    return list_envelope(
        "faqs", f"FAQs for {country['country_name']}", [FaqResponse.from_faq(f) for f in faqs]
    )


@router.get("/{faq_id}")
async def get_faq(faq_id: str, db: AsyncSession = Depends(get_db)):
    faq = await ContentService(db).get(Faq, faq_id, "FAQ")
    return item_envelope("faq", "FAQ fetched successfully", FaqResponse.from_faq(faq))


@router.put("/{faq_id}")
async def update_faq(
    faq_id: str,
    data: FaqUpdate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    faq = await service.get(Faq, faq_id, "FAQ")
    changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    if "country_id" in changes:
        changes.update(await service.country_reference(changes["country_id"]))

    faq = await service.update(faq, changes)
    return item_envelope("faq", "FAQ updated successfully", FaqResponse.from_faq(faq))


@router.delete("/{faq_id}")
async def delete_faq(
    faq_id: str,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await ContentService(db).delete(Faq, faq_id, "FAQ")
    return {"success": True, "message": "FAQ deleted successfully", "id": deleted_id}
