from fastapi import APIRouter
from abroad_api.api.v1.endpoints import (
    students, admins, superadmins, countries, universities, courses, faqs, testimonials, blogs, inquiry
)

api_router = APIRouter()

# Principals
api_router.include_router(students.router, prefix="/user", tags=["Students"])
api_router.include_router(admins.router, prefix="/admin", tags=["Admins"])
api_router.include_router(superadmins.router, prefix="/superadmin", tags=["Superadmins"])

# Site content
api_router.include_router(countries.router, prefix="/country", tags=["Countries"])
api_router.include_router(universities.router, prefix="/university", tags=["Universities"])
api_router.include_router(courses.router, prefix="/course", tags=["Courses"])
api_router.include_router(faqs.router, prefix="/faq", tags=["FAQs"])
api_router.include_router(testimonials.router, prefix="/testimonial", tags=["Testimonials"])
api_router.include_router(blogs.router, prefix="/blog", tags=["Blogs"])

# Contact form and session check
api_router.include_router(inquiry.router, tags=["Site"])
