from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.database import get_db
from abroad_api.models import Course, Principal
from abroad_api.modules.auth.dependencies import require_admin_or_superadmin
from abroad_api.schemas.content import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    item_envelope,
    list_envelope,
)
from abroad_api.services.content_service import ContentService, slugify

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_course(
    data: CourseCreate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    fields = data.model_dump(mode="json", exclude_none=True)
    fields.update(await service.university_reference(data.university_id))
    await service.ensure_unique(Course, Course.title, data.title, "Course")
    fields.setdefault("slug", slugify(data.title))

    course = await service.create(Course, fields, "Course")
    return item_envelope("course", "Course created successfully", CourseResponse.from_course(course))


@router.get("/")
async def list_courses(db: AsyncSession = Depends(get_db)):
    courses = await ContentService(db).list_items(Course)
    return list_envelope("courses", "All courses", [CourseResponse.from_course(c) for c in courses])


@router.get("/university/{university_id}")
async def list_courses_by_university(university_id: str, db: AsyncSession = Depends(get_db)):
    service = ContentService(db)
    university = await service.university_reference(university_id)
    courses = await service.list_items(Course, Course.university_id == university["university_id"])
    return list_envelope(
        "courses",
        f"Courses at {university['university_name']}",
        [CourseResponse.from_course(c) for c in courses],
    )


@router.get("/slug/{slug}")
async def get_course_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    course = await ContentService(db).get_by(Course, Course.slug, slug, "Course")
    return item_envelope("course", "Course fetched successfully", CourseResponse.from_course(course))


@router.get("/{course_id}")
async def get_course(course_id: str, db: AsyncSession = Depends(get_db)):
    course = await ContentService(db).get(Course, course_id, "Course")
    return item_envelope("course", "Course fetched successfully", CourseResponse.from_course(course))


@router.put("/{course_id}")
async def update_course(
    course_id: str,
    data: CourseUpdate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    course = await service.get(Course, course_id, "Course")
    changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)

    if "title" in changes:
        await service.ensure_unique(Course, Course.title, changes["title"], "Course", exclude_id=course.id)
    if "university_id" in changes:
        changes.update(await service.university_reference(changes["university_id"]))

    course = await service.update(course, changes)
    return item_envelope("course", "Course updated successfully", CourseResponse.from_course(course))


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await ContentService(db).delete(Course, course_id, "Course")
    return {"success": True, "message": "Course deleted successfully", "id": deleted_id}
