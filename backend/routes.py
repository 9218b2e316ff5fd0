import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy import desc
from sqlalchemy.orm import Session

from auth import AdminIdentity, get_settings, login, require_admin
from config import Settings
from database import get_db
from models import PROJECT_CATEGORIES, Inquiry, Project
from schemas import (
    InquiryCreate,
    InquiryResponse,
    InquiryUpdate,
    LoginRequest,
    MessageResponse,
    ProjectResponse,
    TokenResponse,
)
from uploads import remove_public_file, stage_image

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])
inquiry_router = APIRouter(prefix="/inquiries", tags=["inquiries"])
project_router = APIRouter(prefix="/projects", tags=["projects"])

REQUIRED_PROJECT_FIELDS = (
    "title",
    "description",
    "technologies",
    "category",
    "completionDate",
)


# Auth


@auth_router.post("/login", response_model=TokenResponse)
def login_admin(payload: LoginRequest, settings: Settings = Depends(get_settings)):
    token, identity = login(settings, payload.email, payload.password)
    logger.info("Login successful for %s", identity.email)
    return {"token": token, "user": identity.as_dict()}


# Inquiries


def _get_inquiry(db: Session, inquiry_id: int) -> Inquiry:
    inquiry = db.query(Inquiry).filter(Inquiry.id == inquiry_id).first()
    if not inquiry:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    return inquiry


@inquiry_router.post("", response_model=InquiryResponse, status_code=201)
def create_inquiry(payload: InquiryCreate, db: Session = Depends(get_db)):
    inquiry = Inquiry(
        name=payload.name,
        email=payload.email,
        phone=(payload.phone or "").strip(),
        company=(payload.company or "").strip(),
        message=payload.message,
        status="new",
    )
    db.add(inquiry)
    db.commit()
    db.refresh(inquiry)
    logger.info("Inquiry %s saved", inquiry.id)
    return inquiry


@inquiry_router.get("", response_model=List[InquiryResponse])
def list_inquiries(
    admin: AdminIdentity = Depends(require_admin), db: Session = Depends(get_db)
):
    return db.query(Inquiry).order_by(desc(Inquiry.created_at), desc(Inquiry.id)).all()


@inquiry_router.patch("/{inquiry_id}", response_model=InquiryResponse)
def update_inquiry(
    inquiry_id: int,
    payload: InquiryUpdate,
    admin: AdminIdentity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    inquiry = _get_inquiry(db, inquiry_id)
    inquiry.status = payload.status
    db.commit()
    db.refresh(inquiry)
    logger.info("Inquiry %s set to %s by %s", inquiry_id, payload.status, admin.email)
    return inquiry


@inquiry_router.delete("/{inquiry_id}", response_model=MessageResponse)
def delete_inquiry(
    inquiry_id: int,
    admin: AdminIdentity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    inquiry = _get_inquiry(db, inquiry_id)
    db.delete(inquiry)
    db.commit()
    logger.info("Inquiry %s deleted by %s", inquiry_id, admin.email)
    return {"message": "Inquiry deleted successfully"}


# Projects


def parse_technologies(value: str) -> List[str]:
    technologies = [tech.strip() for tech in value.split(",")]
    technologies = [tech for tech in technologies if tech]
    if not technologies:
        raise HTTPException(status_code=400, detail="At least one technology is required")
    return technologies


def parse_completion_date(value: str) -> date:
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid completion date format")


def parse_category(value: str) -> str:
    value = value.strip()
    if value not in PROJECT_CATEGORIES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid category. Must be one of: {', '.join(PROJECT_CATEGORIES)}",
        )
    return value


def project_fields(form: dict, partial: bool = False) -> dict:
    """Validate multipart text fields into column values.

    With `partial`, absent (None) fields are skipped, but a field that is
    present must still be valid.
    """
    if partial:
        blank = [
            name
            for name in REQUIRED_PROJECT_FIELDS
            if form[name] is not None and not form[name].strip()
        ]
    else:
        blank = [name for name in REQUIRED_PROJECT_FIELDS if not (form[name] or "").strip()]
    if blank:
        raise HTTPException(
            status_code=400, detail=f"Missing required fields: {', '.join(blank)}"
        )

    values = {}
    if form["title"] is not None:
        values["title"] = form["title"].strip()
    if form["description"] is not None:
        values["description"] = form["description"].strip()
    if form["technologies"] is not None:
        values["technologies"] = parse_technologies(form["technologies"])
    if form["category"] is not None:
        values["category"] = parse_category(form["category"])
    if form["completionDate"] is not None:
        values["completion_date"] = parse_completion_date(form["completionDate"])
    if form["featured"] is not None or not partial:
        values["featured"] = (form["featured"] or "").strip().lower() == "true"
    for key, column in (("liveUrl", "live_url"), ("githubUrl", "github_url")):
        if form[key] is not None or not partial:
            values[column] = (form[key] or "").strip() or None
    return values


def project_response(request: Request, project: Project) -> ProjectResponse:
    response = ProjectResponse.model_validate(project)
    base_url = str(request.base_url).rstrip("/")
    return response.model_copy(update={"image_url": f"{base_url}{project.image_url}"})


def _get_project(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@project_router.get("", response_model=List[ProjectResponse])
def list_projects(
    request: Request,
    category: Optional[str] = None,
    featured: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Project)
    if category:
        query = query.filter(Project.category == category)
    if featured == "true":
        query = query.filter(Project.featured.is_(True))
    projects = query.order_by(
        desc(Project.completion_date), desc(Project.created_at), desc(Project.id)
    ).all()
    return [project_response(request, project) for project in projects]


@project_router.get("/{project_id}", response_model=ProjectResponse)
def get_project(request: Request, project_id: int, db: Session = Depends(get_db)):
    return project_response(request, _get_project(db, project_id))


@project_router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    request: Request,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    technologies: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    completion_date: Optional[str] = Form(None, alias="completionDate"),
    featured: Optional[str] = Form(None),
    live_url: Optional[str] = Form(None, alias="liveUrl"),
    github_url: Optional[str] = Form(None, alias="githubUrl"),
    image: Optional[UploadFile] = File(None),
    admin: AdminIdentity = Depends(require_admin),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="Project image is required")

    form = dict(
        title=title,
        description=description,
        technologies=technologies,
        category=category,
        completionDate=completion_date,
        featured=featured,
        liveUrl=live_url,
        githubUrl=github_url,
    )
    with stage_image(settings.public_dir, image) as staged:
        project = Project(image_url=staged.public_path, **project_fields(form))
        db.add(project)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        staged.commit()

    db.refresh(project)
    logger.info("Project %s created by %s", project.id, admin.email)
    return project_response(request, project)


@project_router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    request: Request,
    project_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    technologies: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    completion_date: Optional[str] = Form(None, alias="completionDate"),
    featured: Optional[str] = Form(None),
    live_url: Optional[str] = Form(None, alias="liveUrl"),
    github_url: Optional[str] = Form(None, alias="githubUrl"),
    image: Optional[UploadFile] = File(None),
    admin: AdminIdentity = Depends(require_admin),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    form = dict(
        title=title,
        description=description,
        technologies=technologies,
        category=category,
        completionDate=completion_date,
        featured=featured,
        liveUrl=live_url,
        githubUrl=github_url,
    )
    project = _get_project(db, project_id)
    with stage_image(settings.public_dir, image) as staged:
        values = project_fields(form, partial=True)
        old_image_url = project.image_url
        if staged.public_path:
            values["image_url"] = staged.public_path
        for column, value in values.items():
            setattr(project, column, value)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        staged.commit()

    if staged.public_path:
        remove_public_file(settings.public_dir, old_image_url)
    db.refresh(project)
    logger.info("Project %s updated by %s", project_id, admin.email)
    return project_response(request, project)


@project_router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: int,
    admin: AdminIdentity = Depends(require_admin),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    project = _get_project(db, project_id)
    remove_public_file(settings.public_dir, project.image_url)
    db.delete(project)
    db.commit()
    logger.info("Project %s deleted by %s", project_id, admin.email)
    return {"message": "Project deleted successfully"}
