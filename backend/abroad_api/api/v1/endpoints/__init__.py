# API endpoints
from . import students, admins, superadmins, countries, universities, courses, faqs, testimonials, blogs, inquiry

__all__ = ["students", "admins", "superadmins", "countries", "universities", "courses", "faqs", "testimonials", "blogs", "inquiry"]
