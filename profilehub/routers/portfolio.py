from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from profilehub.database import get_db
from profilehub.models.education import Education
from profilehub.models.experience import Experience
from profilehub.models.image import Image
from profilehub.models.ownership import OwnerKind
from profilehub.models.user import User
from profilehub.routers.dependencies import get_current_user, get_image_uploader
from profilehub.schemas.portfolio import (
    EducationCreate,
    EducationRead,
    EducationUpdate,
    ExperienceCreate,
    ExperienceRead,
    ExperienceUpdate,
    ImageRead,
    ImageUploadResponse,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
)
from profilehub.schemas.upload import UploadErrorKind
from profilehub.services import portfolio_service as portfolio
from profilehub.services.images.errors import StorageError
from profilehub.services.images.upload import ImageUploader
from profilehub.services.profile_service import get_profile


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["portfolio"])


def _not_found(label: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def _require_education(db: Session, user: User, education_id: int, *, include_deleted: bool = False) -> Education:
    row = portfolio.get_user_row(db, Education, user.id, education_id, include_deleted=include_deleted)
    if row is None:
        raise _not_found("Education")
    return row


def _require_experience(db: Session, user: User, experience_id: int, *, include_deleted: bool = False) -> Experience:
    row = portfolio.get_user_row(db, Experience, user.id, experience_id, include_deleted=include_deleted)
    if row is None:
        raise _not_found("Experience")
    return row


def _image_read(image: Image, uploader: ImageUploader) -> ImageRead:
    out = ImageRead.model_validate(image)
    try:
        url = uploader.storages.get(image.storage_backend).url(image.path)
    except StorageError:
        url = None
    return out.model_copy(update={"url": url})


# Educations

@router.get("/educations", response_model=list[EducationRead])
def list_educations(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return portfolio.list_user_rows(db, Education, current_user.id)


@router.post("/educations", response_model=EducationRead, status_code=status.HTTP_201_CREATED)
def create_education(
    payload: EducationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return portfolio.create_user_row(db, Education, current_user.id, payload)


@router.put("/educations/{education_id}", response_model=EducationRead)
def update_education(
    education_id: int,
    payload: EducationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return portfolio.update_row(db, _require_education(db, current_user, education_id), payload)


@router.delete("/educations/{education_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_education(education_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    portfolio.soft_delete_row(db, _require_education(db, current_user, education_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/educations/{education_id}/restore", response_model=EducationRead)
def restore_education(education_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return portfolio.restore_row(db, _require_education(db, current_user, education_id, include_deleted=True))


@router.get("/educations/{education_id}/projects", response_model=list[ProjectRead])
def list_education_projects(
    education_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_education(db, current_user, education_id)
    return portfolio.list_projects(db, OwnerKind.EDUCATION, education_id)


@router.post("/educations/{education_id}/projects", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_education_project(
    education_id: int,
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return portfolio.create_project(db, current_user.id, OwnerKind.EDUCATION, education_id, payload)
    except portfolio.OwnerNotFound as exc:
        raise _not_found("Education") from exc


# Experiences

@router.get("/experiences", response_model=list[ExperienceRead])
def list_experiences(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return portfolio.list_user_rows(db, Experience, current_user.id)


@router.post("/experiences", response_model=ExperienceRead, status_code=status.HTTP_201_CREATED)
def create_experience(
    payload: ExperienceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return portfolio.create_user_row(db, Experience, current_user.id, payload)


@router.put("/experiences/{experience_id}", response_model=ExperienceRead)
def update_experience(
    experience_id: int,
    payload: ExperienceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return portfolio.update_row(db, _require_experience(db, current_user, experience_id), payload)


@router.delete("/experiences/{experience_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_experience(experience_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    portfolio.soft_delete_row(db, _require_experience(db, current_user, experience_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/experiences/{experience_id}/restore", response_model=ExperienceRead)
def restore_experience(experience_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return portfolio.restore_row(db, _require_experience(db, current_user, experience_id, include_deleted=True))


# Projects owned by the profile

@router.get("/projects", response_model=list[ProjectRead])
def list_profile_projects(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    profile = get_profile(db, current_user.id)
    if profile is None:
        return []
    return portfolio.list_projects(db, OwnerKind.PROFILE, profile.id)


@router.post("/projects", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_profile_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = get_profile(db, current_user.id)
    if profile is None:
        raise _not_found("Profile")
    return portfolio.create_project(db, current_user.id, OwnerKind.PROFILE, profile.id, payload)


@router.put("/projects/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = portfolio.get_user_project(db, current_user.id, project_id)
    if project is None:
        raise _not_found("Project")
    return portfolio.update_row(db, project, payload)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    project = portfolio.get_user_project(db, current_user.id, project_id)
    if project is None:
        raise _not_found("Project")
    portfolio.soft_delete_row(db, project)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/projects/{project_id}/restore", response_model=ProjectRead)
def restore_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    project = portfolio.get_user_project(db, current_user.id, project_id, include_deleted=True)
    if project is None:
        raise _not_found("Project")
    return portfolio.restore_row(db, project)


# Images

@router.get("/images/{owner_kind}/{owner_id}", response_model=list[ImageRead])
def list_owner_images(
    owner_kind: OwnerKind,
    owner_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    try:
        portfolio.require_owner(db, current_user.id, owner_kind, owner_id)
    except portfolio.OwnerNotFound as exc:
        raise _not_found(owner_kind.value.capitalize()) from exc
    return [_image_read(image, uploader) for image in portfolio.list_images(db, owner_kind, owner_id)]


@router.post("/images/{image_id}/primary", response_model=ImageRead)
def make_primary_image(
    image_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    image = portfolio.get_user_image(db, current_user.id, image_id)
    if image is None:
        raise _not_found("Image")
    return _image_read(portfolio.set_primary_image(db, image), uploader)


@router.post("/images/{owner_kind}/{owner_id}", response_model=ImageUploadResponse)
def upload_owner_image(
    owner_kind: OwnerKind,
    owner_id: int,
    image: UploadFile = File(...),
    alt_text: Optional[str] = Form(None),
    is_primary: bool = Form(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    try:
        portfolio.require_owner(db, current_user.id, owner_kind, owner_id)
    except portfolio.OwnerNotFound as exc:
        raise _not_found(owner_kind.value.capitalize()) from exc

    try:
        result = uploader.upload(
            image,
            directory=f"{owner_kind.value}_images",
            base_filename=image.filename,
            public=True,
        )
    finally:
        image.file.close()
    if not result.success:
        return ImageUploadResponse(image=None, upload=result)

    try:
        record = portfolio.attach_uploaded_image(
            db,
            owner_kind,
            owner_id,
            result,
            original_filename=image.filename,
            alt_text=alt_text,
            is_primary=is_primary,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        # The object is already stored; record its key so it can be cleaned up.
        logger.warning(
            "image.attach_failed owner=%s:%s orphaned_backend=%s orphaned_key=%s error=%s",
            owner_kind.value,
            owner_id,
            result.backend,
            result.key,
            exc,
        )
        failed = result.model_copy(
            update={
                "success": False,
                "message": f"Image upload failed: {exc}",
                "error": str(exc),
                "error_kind": UploadErrorKind.UNEXPECTED,
            }
        )
        return ImageUploadResponse(image=None, upload=failed)
    return ImageUploadResponse(image=_image_read(record, uploader), upload=result)


@router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(image_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    image = portfolio.get_user_image(db, current_user.id, image_id)
    if image is None:
        raise _not_found("Image")
    portfolio.soft_delete_row(db, image)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
