from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from database import Base

PROJECT_CATEGORIES = (
    "Web Development",
    "Mobile App",
    "Desktop App",
    "UI/UX Design",
    "Other",
)


class Inquiry(Base):
    __tablename__ = "inquiries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False, default="")
    company = Column(String, nullable=False, default="")
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="new")  # new, read, responded
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String, nullable=False)  # relative, e.g. /uploads/projects/x.png
    technologies = Column(JSON, nullable=False, default=list)
    live_url = Column(String, nullable=True)
    github_url = Column(String, nullable=True)
    category = Column(String, nullable=False, index=True)
    completion_date = Column(Date, nullable=False)
    featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
