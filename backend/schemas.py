from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel

InquiryStatus = Literal["new", "read", "responded"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserInfo(BaseModel):
    id: str
    email: str
    role: str


class TokenResponse(BaseModel):
    token: str
    user: UserInfo


class InquiryCreate(CamelModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    company: Optional[str] = None
    message: str

    @field_validator("name", "message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class InquiryUpdate(CamelModel):
    status: InquiryStatus


class InquiryResponse(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    company: str
    message: str
    status: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class ProjectResponse(CamelModel):
    id: int
    title: str
    description: str
    image_url: str
    technologies: List[str]
    live_url: Optional[str]
    github_url: Optional[str]
    category: str
    completion_date: date
    featured: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    message: str
    database: str
