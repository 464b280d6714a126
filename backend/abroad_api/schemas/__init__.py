# Pydantic schemas
from abroad_api.schemas.principal import (
    StudentRegister,
    AdminRegister,
    LoginRequest,
    StudentResponse,
    AdminResponse,
    StudentLoginResponse,
    AdminLoginResponse,
)
from abroad_api.schemas.content import (
    CountryResponse,
    UniversityResponse,
    CourseResponse,
    FaqResponse,
    TestimonialResponse,
    BlogResponse,
    InquiryRequest,
)
