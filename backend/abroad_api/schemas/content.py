from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional, List, Sequence
from datetime import datetime

from abroad_api.schemas.principal import CamelModel, _id_field


class ImageAsset(BaseModel):
    """Metadata of an already-uploaded image"""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    url: str
    public_id: Optional[str] = None
    filename: Optional[str] = None
    content_type: Optional[str] = Field(None, alias="contentType")
    path: Optional[str] = None


class DegreeFees(BaseModel):
    undergraduate: Optional[str] = None
    masters: Optional[str] = None


class GeneralFees(DegreeFees):
    mba: Optional[str] = None


class ContentResponse(CamelModel):
    id: str = _id_field()
    priority: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ==================== Country ====================

class CountryCreate(CamelModel):
    name: str = Field(..., min_length=1)
    priority: int = 0
    image: Optional[ImageAsset] = None
    image_alt: Optional[str] = None
    public_uni: Optional[DegreeFees] = None
    private_uni: Optional[DegreeFees] = None
    general: Optional[GeneralFees] = None


class CountryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    priority: Optional[int] = None
    image: Optional[ImageAsset] = None
    image_alt: Optional[str] = None
    public_uni: Optional[DegreeFees] = None
    private_uni: Optional[DegreeFees] = None
    general: Optional[GeneralFees] = None


class CountryResponse(ContentResponse):
    name: str
    image: Optional[ImageAsset] = None
    image_alt: Optional[str] = None
    public_uni: Optional[DegreeFees] = None
    private_uni: Optional[DegreeFees] = None
    general: Optional[GeneralFees] = None


# ==================== University ====================

class UniversityFields(CamelModel):
    slug: Optional[str] = None
    priority: Optional[int] = None
    admission_open: Optional[bool] = None
    category: Optional[str] = None
    address: Optional[str] = None
    link: Optional[str] = None
    email: Optional[str] = None
    fb: Optional[str] = None
    insta: Optional[str] = None
    x: Optional[str] = None
    phone: Optional[str] = None
    syllabus: Optional[str] = None
    estd_date: Optional[str] = None
    dean_msg: Optional[str] = None
    scholarship: Optional[str] = None
    content: Optional[str] = None
    test: Optional[str] = None
    applyfee: Optional[str] = None
    image: Optional[ImageAsset] = None
    uni_logo: Optional[ImageAsset] = None
    image_alt: Optional[str] = None
    tags: Optional[str] = None


class UniversityCreate(UniversityFields):
    name: str = Field(..., min_length=1)
    country_id: str = Field(..., min_length=1)


class UniversityUpdate(UniversityFields):
    name: Optional[str] = Field(None, min_length=1)
    country_id: Optional[str] = None


class UniversityCountry(BaseModel):
    id: str
    name: str


class UniversityResponse(ContentResponse, UniversityFields):
    name: str
    slug: str
    priority: int = 0
    country: UniversityCountry

    @classmethod
    def from_university(cls, university) -> "UniversityResponse":
        data = {
            name: getattr(university, name)
            for name in UniversityFields.model_fields
        }
        data.update(
            id=university.id,
            name=university.name,
            priority=university.priority,
            created_at=university.created_at,
            updated_at=university.updated_at,
            country=UniversityCountry(id=university.country_id, name=university.country_name),
        )
        return cls(**data)


# ==================== Course ====================

class CourseFields(CamelModel):
    slug: Optional[str] = None
    priority: Optional[int] = None
    category: Optional[str] = None
    qualification: Optional[str] = None
    earliest_intake: Optional[str] = None
    deadline: Optional[str] = None
    duration: Optional[str] = None
    entry_score: Optional[str] = None
    fee: Optional[str] = None
    scholarship: Optional[str] = None
    stream: Optional[str] = None
    overview: Optional[str] = None
    tags: Optional[str] = None


class CourseCreate(CourseFields):
    title: str = Field(..., min_length=1)
    university_id: str = Field(..., min_length=1)


class CourseUpdate(CourseFields):
    title: Optional[str] = Field(None, min_length=1)
    university_id: Optional[str] = None


class CourseUniversity(BaseModel):
    id: str
    name: str
    slug: Optional[str] = None


class CourseResponse(ContentResponse, CourseFields):
    title: str
    slug: str
    priority: int = 0
    university: CourseUniversity

    @classmethod
    def from_course(cls, course) -> "CourseResponse":
        data = {name: getattr(course, name) for name in CourseFields.model_fields}
        data.update(
            id=course.id,
            title=course.title,
            priority=course.priority,
            created_at=course.created_at,
            updated_at=course.updated_at,
            university=CourseUniversity(
                id=course.university_id,
                name=course.university_name,
                slug=course.university_slug,
            ),
        )
        return cls(**data)


# ==================== FAQ ====================

class FaqCreate(CamelModel):
    ques: str = Field(..., min_length=1)
    ans: str = Field(..., min_length=1)
    priority: int = 0
    country_id: Optional[str] = None


class FaqUpdate(CamelModel):
    ques: Optional[str] = Field(None, min_length=1)
    ans: Optional[str] = Field(None, min_length=1)
    priority: Optional[int] = None
    country_id: Optional[str] = None


class FaqResponse(ContentResponse):
    ques: str
    ans: str
    country: Optional[UniversityCountry] = None

    @classmethod
    def from_faq(cls, faq) -> "FaqResponse":
        country = None
        if faq.country_id:
            country = UniversityCountry(id=faq.country_id, name=faq.country_name or "")
        return cls(
            id=faq.id,
            priority=faq.priority,
            ques=faq.ques,
            ans=faq.ans,
            country=country,
            created_at=faq.created_at,
            updated_at=faq.updated_at,
        )


# ==================== Testimonial ====================

class TestimonialCreate(CamelModel):
    name: str = Field(..., min_length=1)
    review: str = Field(..., min_length=1)
    post: Optional[str] = None
    priority: int = 0
    image: Optional[ImageAsset] = None
    image_alt: Optional[str] = None


class TestimonialUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    review: Optional[str] = Field(None, min_length=1)
    post: Optional[str] = None
    priority: Optional[int] = None
    image: Optional[ImageAsset] = None
    image_alt: Optional[str] = None


class TestimonialResponse(ContentResponse):
    name: str
    review: str
    post: Optional[str] = None
    image: Optional[ImageAsset] = None
    image_alt: Optional[str] = None


# ==================== Blog ====================

class BlogCreate(CamelModel):
    title: str = Field(..., min_length=1)
    slug: Optional[str] = None
    category: Optional[str] = None
    content: Optional[str] = None
    images: List[ImageAsset] = []
    tags: Optional[str] = None
    priority: int = 0


class BlogUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = None
    category: Optional[str] = None
    content: Optional[str] = None
    images: Optional[List[ImageAsset]] = None
    tags: Optional[str] = None
    priority: Optional[int] = None


class BlogResponse(ContentResponse):
    title: str
    slug: str
    category: Optional[str] = None
    content: Optional[str] = None
    images: List[ImageAsset] = []
    tags: Optional[str] = None

    @classmethod
    def from_blog(cls, blog) -> "BlogResponse":
        return cls.model_validate(
            {
                "id": blog.id,
                "priority": blog.priority,
                "title": blog.title,
                "slug": blog.slug,
                "category": blog.category,
                "content": blog.content,
                "images": blog.images or [],
                "tags": blog.tags,
                "created_at": blog.created_at,
                "updated_at": blog.updated_at,
            }
        )


class InquiryRequest(BaseModel):
    """Contact form submitted from the public site"""
    email: Optional[str] = None
    fullname: Optional[str] = None
    number: Optional[str] = None
    text: Optional[str] = None


# ==================== Envelopes ====================

def item_envelope(key: str, message: str, item: BaseModel) -> Dict[str, Any]:
    """``{success, message, <key>: item}`` rendered the way the site expects (``_id``, camelCase)"""
    return {
        "success": True,
        "message": message,
        key: item.model_dump(mode="json", by_alias=True),
    }


def list_envelope(key: str, message: str, items: Sequence[BaseModel]) -> Dict[str, Any]:
    return {
        "success": True,
        "countTotal": len(items),
        "message": message,
        key: [item.model_dump(mode="json", by_alias=True) for item in items],
    }
