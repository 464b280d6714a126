from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.database import get_db
from abroad_api.models import Principal, Testimonial
from abroad_api.modules.auth.dependencies import require_admin_or_superadmin
from abroad_api.schemas.content import (
    TestimonialCreate,
    TestimonialResponse,
    TestimonialUpdate,
    item_envelope,
    list_envelope,
)
from abroad_api.services.content_service import ContentService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_testimonial(
    data: TestimonialCreate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    testimonial = await ContentService(db).create(
        Testimonial, data.model_dump(mode="json", exclude_none=True), "Testimonial"
    )
    return item_envelope(
        "testimonial", "Testimonial created successfully", TestimonialResponse.model_validate(testimonial)
    )


@router.get("/")
async def list_testimonials(db: AsyncSession = Depends(get_db)):
    testimonials = await ContentService(db).list_items(Testimonial)
    return list_envelope(
        "testimonials", "All testimonials", [TestimonialResponse.model_validate(t) for t in testimonials]
    )


@router.get("/{testimonial_id}")
async def get_testimonial(testimonial_id: str, db: AsyncSession = Depends(get_db)):
    testimonial = await ContentService(db).get(Testimonial, testimonial_id, "Testimonial")
    return item_envelope(
        "testimonial", "Testimonial fetched successfully", TestimonialResponse.model_validate(testimonial)
    )


@router.put("/{testimonial_id}")
async def update_testimonial(
    testimonial_id: str,
    data: TestimonialUpdate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    testimonial = await service.get(Testimonial, testimonial_id, "Testimonial")
    testimonial = await service.update(
        testimonial, data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    )
    return item_envelope(
        "testimonial", "Testimonial updated successfully", TestimonialResponse.model_validate(testimonial)
    )


@router.delete("/{testimonial_id}")
async def delete_testimonial(
    testimonial_id: str,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await ContentService(db).delete(Testimonial, testimonial_id, "Testimonial")
    return {"success": True, "message": "Testimonial deleted successfully", "id": deleted_id}
