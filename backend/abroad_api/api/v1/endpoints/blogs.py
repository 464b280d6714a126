from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.database import get_db
from abroad_api.models import Blog, Principal
from abroad_api.modules.auth.dependencies import require_admin_or_superadmin
from abroad_api.schemas.content import (
    BlogCreate,
    BlogResponse,
    BlogUpdate,
    item_envelope,
    list_envelope,
)
from abroad_api.services.content_service import ContentService, slugify

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_blog(
    data: BlogCreate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    await service.ensure_unique(Blog, Blog.title, data.title, "Blog")
    fields = data.model_dump(mode="json", exclude_none=True)
    fields["slug"] = data.slug or slugify(data.title)

    blog = await service.create(Blog, fields, "Blog")
    return item_envelope("blog", "Blog created successfully", BlogResponse.from_blog(blog))


@router.get("/")
async def list_blogs(db: AsyncSession = Depends(get_db)):
    blogs = await ContentService(db).list_items(Blog)
    return list_envelope("blogs", "All blogs", [BlogResponse.from_blog(b) for b in blogs])


@router.get("/slug/{slug}")
async def get_blog_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    blog = await ContentService(db).get_by(Blog, Blog.slug, slug, "Blog")
    return item_envelope("blog", "Blog fetched successfully", BlogResponse.from_blog(blog))


@router.get("/{blog_id}")
async def get_blog(blog_id: str, db: AsyncSession = Depends(get_db)):
    blog = await ContentService(db).get(Blog, blog_id, "Blog")
    return item_envelope("blog", "Blog fetched successfully", BlogResponse.from_blog(blog))


@router.put("/{blog_id}")
async def update_blog(
    blog_id: str,
    data: BlogUpdate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    blog = await service.get(Blog, blog_id, "Blog")
    changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    if "title" in changes:
        await service.ensure_unique(Blog, Blog.title, changes["title"], "Blog", exclude_id=blog.id)

    blog = await service.update(blog, changes)
    return item_envelope("blog", "Blog updated successfully", BlogResponse.from_blog(blog))


@router.delete("/{blog_id}")
async def delete_blog(
    blog_id: str,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await ContentService(db).delete(Blog, blog_id, "Blog")
    return {"success": True, "message": "Blog deleted successfully", "id": deleted_id}
