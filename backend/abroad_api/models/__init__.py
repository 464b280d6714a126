from abroad_api.models.principal import (
    PrincipalRole,
    Principal,
    Student,
    Admin,
    Superadmin,
    Application,
    wishlist_table,
)
from abroad_api.models.content import (
    Country,
    University,
    Course,
    Faq,
    Testimonial,
    Blog,
)

__all__ = [
    "PrincipalRole",
    "Principal",
    "Student",
    "Admin",
    "Superadmin",
    "Application",
    "wishlist_table",
    "Country",
    "University",
    "Course",
    "Faq",
    "Testimonial",
    "Blog",
]
