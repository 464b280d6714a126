"""Public site content managed by admins: countries, universities, courses, FAQs, testimonials, blogs"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, JSON
from datetime import datetime

from abroad_api.core.database import Base
from abroad_api.core.types import GUID, generate_uuid


class ContentMixin:
    """Columns every content table carries; lists sort by priority first"""

    id = Column(GUID, primary_key=True, default=generate_uuid)
    priority = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Country(ContentMixin, Base):
    __tablename__ = "countries"

    name = Column(String(255), nullable=False, index=True)
    # Image metadata: {url, public_id, filename, contentType, path}
    image = Column(JSON, nullable=True)
    image_alt = Column(String(255), nullable=True)
    # {undergraduate, masters}
    public_uni = Column(JSON, nullable=True)
    private_uni = Column(JSON, nullable=True)
    # {undergraduate, masters, mba}
    general = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<Country {self.name}>"


class University(ContentMixin, Base):
    __tablename__ = "universities"

    name = Column(String(255), unique=True, nullable=False, index=True)
    slug = Column(String(255), nullable=False, index=True)

    # Denormalised from the Country at creation
    country_id = Column(GUID, nullable=False, index=True)
    country_name = Column(String(255), nullable=False)

    admission_open = Column(Boolean, nullable=True)
    category = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    link = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)
    fb = Column(Text, nullable=True)
    insta = Column(Text, nullable=True)
    x = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    syllabus = Column(Text, nullable=True)
    estd_date = Column(String(50), nullable=True)
    dean_msg = Column(Text, nullable=True)
    scholarship = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    test = Column(Text, nullable=True)
    applyfee = Column(String(100), nullable=True)
    image = Column(JSON, nullable=True)
    uni_logo = Column(JSON, nullable=True)
    image_alt = Column(String(255), nullable=True)
    tags = Column(Text, nullable=True)

    def __repr__(self):
        return f"<University {self.name}>"


class Course(ContentMixin, Base):
    __tablename__ = "courses"

    title = Column(String(255), unique=True, nullable=False, index=True)
    slug = Column(String(255), nullable=False, index=True)

    # Denormalised from the University at creation
    university_id = Column(GUID, nullable=False, index=True)
    university_name = Column(String(255), nullable=False)
    university_slug = Column(String(255), nullable=True)

    category = Column(String(100), nullable=True)
    qualification = Column(String(255), nullable=True)
    earliest_intake = Column(String(100), nullable=True)
    deadline = Column(String(100), nullable=True)
    duration = Column(String(100), nullable=True)
    entry_score = Column(String(100), nullable=True)
    fee = Column(String(100), nullable=True)
    scholarship = Column(Text, nullable=True)
    stream = Column(String(255), nullable=True)
    overview = Column(Text, nullable=True)
    tags = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Course {self.title}>"


class Faq(ContentMixin, Base):
    __tablename__ = "faqs"

    ques = Column(Text, nullable=False)
    ans = Column(Text, nullable=False)
    country_id = Column(GUID, nullable=True, index=True)
    country_name = Column(String(255), nullable=True)


class Testimonial(ContentMixin, Base):
    __tablename__ = "testimonials"

    name = Column(String(255), nullable=False)
    post = Column(String(255), nullable=True)
    review = Column(Text, nullable=False)
    image = Column(JSON, nullable=True)
    image_alt = Column(String(255), nullable=True)


class Blog(ContentMixin, Base):
    __tablename__ = "blogs"

    title = Column(String(255), unique=True, nullable=False)
    slug = Column(String(255), nullable=False, index=True)
    category = Column(String(100), nullable=True)
    content = Column(Text, nullable=True)
    images = Column(JSON, nullable=True)
    tags = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Blog {self.title}>"
