from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Callable, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

from profilehub.models.education import Education
from profilehub.models.experience import Experience
from profilehub.models.image import Image
from profilehub.models.ownership import IMAGE_OWNER_KINDS, PROJECT_OWNER_KINDS, OwnerKind
from profilehub.models.profile import Profile
from profilehub.models.project import Project
from profilehub.schemas.upload import UploadResult


logger = logging.getLogger(__name__)

T = TypeVar("T", Education, Experience, Project, Image)


class OwnerNotFound(LookupError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _education_owner(db: Session, owner_id: int) -> int | None:
    row = db.query(Education.user_id).filter(Education.id == owner_id, Education.deleted_at.is_(None)).first()
    return row[0] if row else None


def _profile_owner(db: Session, owner_id: int) -> int | None:
    row = db.query(Profile.user_id).filter(Profile.id == owner_id, Profile.deleted_at.is_(None)).first()
    return row[0] if row else None


def _project_owner(db: Session, owner_id: int) -> int | None:
    project = db.query(Project).filter(Project.id == owner_id, Project.deleted_at.is_(None)).first()
    if project is None:
        return None
    return owner_user_id(db, OwnerKind(project.owner_kind), project.owner_id)


# Explicit dispatch from the stored tag to the lookup that walks back to the user.
_OWNER_RESOLVERS: dict[OwnerKind, Callable[[Session, int], int | None]] = {
    OwnerKind.PROFILE: _profile_owner,
    OwnerKind.EDUCATION: _education_owner,
    OwnerKind.PROJECT: _project_owner,
}


def owner_user_id(db: Session, kind: OwnerKind, owner_id: int) -> int | None:
    return _OWNER_RESOLVERS[kind](db, owner_id)


def require_owner(db: Session, user_id: int, kind: OwnerKind, owner_id: int) -> None:
    if owner_user_id(db, kind, owner_id) != user_id:
        raise OwnerNotFound(f"{kind.value} {owner_id} not found")


# Educations / experiences

def list_user_rows(db: Session, model: type[T], user_id: int) -> list[T]:
    return (
        db.query(model)
        .filter(model.user_id == user_id, model.deleted_at.is_(None))
        .order_by(model.start_date.desc(), model.id.desc())
        .all()
    )


def get_user_row(db: Session, model: type[T], user_id: int, row_id: int, *, include_deleted: bool = False) -> T | None:
    query = db.query(model).filter(model.id == row_id, model.user_id == user_id)
    if not include_deleted:
        query = query.filter(model.deleted_at.is_(None))
    return query.first()


def create_user_row(db: Session, model: type[T], user_id: int, payload: BaseModel) -> T:
    row = model(user_id=user_id, **payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("portfolio.created kind=%s id=%s user_id=%s", model.__tablename__, row.id, user_id)
    return row


def update_row(db: Session, row: T, payload: BaseModel) -> T:
    for field, value in payload.model_dump().items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def soft_delete_row(db: Session, row: T) -> None:
    row.deleted_at = _utc_now()
    db.commit()
    logger.info("portfolio.soft_deleted kind=%s id=%s", row.__tablename__, row.id)


def restore_row(db: Session, row: T) -> T:
    row.deleted_at = None
    db.commit()
    db.refresh(row)
    return row


# Projects (owned by a profile or an education)

def list_projects(db: Session, kind: OwnerKind, owner_id: int) -> list[Project]:
    return (
        db.query(Project)
        .filter(
            Project.owner_kind == kind.value,
            Project.owner_id == owner_id,
            Project.deleted_at.is_(None),
        )
        .order_by(Project.id)
        .all()
    )


def create_project(db: Session, user_id: int, kind: OwnerKind, owner_id: int, payload: BaseModel) -> Project:
    if kind not in PROJECT_OWNER_KINDS:
        raise OwnerNotFound(f"{kind.value} cannot own projects")
    require_owner(db, user_id, kind, owner_id)
    project = Project(owner_kind=kind.value, owner_id=owner_id, **payload.model_dump())
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def get_user_project(db: Session, user_id: int, project_id: int, *, include_deleted: bool = False) -> Project | None:
    query = db.query(Project).filter(Project.id == project_id)
    if not include_deleted:
        query = query.filter(Project.deleted_at.is_(None))
    project = query.first()
    if project is None:
        return None
    if owner_user_id(db, OwnerKind(project.owner_kind), project.owner_id) != user_id:
        return None
    return project


# Images (owned by a profile, an education or a project)

def list_images(db: Session, kind: OwnerKind, owner_id: int) -> list[Image]:
    return (
        db.query(Image)
        .filter(
            Image.owner_kind == kind.value,
            Image.owner_id == owner_id,
            Image.deleted_at.is_(None),
        )
        .order_by(Image.display_order, Image.id)
        .all()
    )


def _demote_primary(db: Session, kind: OwnerKind, owner_id: int) -> None:
    (
        db.query(Image)
        .filter(
            Image.owner_kind == kind.value,
            Image.owner_id == owner_id,
            Image.is_primary.is_(True),
        )
        .update({Image.is_primary: False}, synchronize_session="fetch")
    )


def attach_uploaded_image(
    db: Session,
    kind: OwnerKind,
    owner_id: int,
    upload: UploadResult,
    *,
    original_filename: str | None,
    alt_text: str | None = None,
    is_primary: bool = False,
) -> Image:
    """Record a stored upload as an image of ``kind``/``owner_id``."""
    if kind not in IMAGE_OWNER_KINDS:
        raise OwnerNotFound(f"{kind.value} cannot own images")
    if is_primary:
        _demote_primary(db, kind, owner_id)
    next_order = len(list_images(db, kind, owner_id))
    image = Image(
        path=upload.key,
        storage_backend=upload.backend or "local",
        original_filename=(original_filename or "image")[:255],
        mime_type="image/jpeg",
        size=upload.compressed_size_bytes or 0,
        alt_text=alt_text,
        display_order=next_order,
        is_primary=is_primary,
        owner_kind=kind.value,
        owner_id=owner_id,
    )
    db.add(image)
    db.commit()
    db.refresh(image)
    logger.info("image.attached owner=%s:%s image_id=%s primary=%s", kind.value, owner_id, image.id, is_primary)
    return image


def get_user_image(db: Session, user_id: int, image_id: int) -> Image | None:
    image = db.query(Image).filter(Image.id == image_id, Image.deleted_at.is_(None)).first()
    if image is None:
        return None
    if owner_user_id(db, OwnerKind(image.owner_kind), image.owner_id) != user_id:
        return None
    return image


def set_primary_image(db: Session, image: Image) -> Image:
    _demote_primary(db, OwnerKind(image.owner_kind), image.owner_id)
    image.is_primary = True
    db.commit()
    db.refresh(image)
    return image


def purge_user_portfolio(db: Session, user_id: int) -> None:
    """Delete every project and image reachable from the user's owners.

    Polymorphic rows carry no foreign key, so they are not covered by the
    ``users`` cascade. Does not commit.
    """
    education_ids = [row[0] for row in db.query(Education.id).filter(Education.user_id == user_id).all()]
    profile_ids = [row[0] for row in db.query(Profile.id).filter(Profile.user_id == user_id).all()]

    project_ids: list[int] = []
    for kind, ids in ((OwnerKind.EDUCATION, education_ids), (OwnerKind.PROFILE, profile_ids)):
        if ids:
            project_ids.extend(
                row[0]
                for row in db.query(Project.id)
                .filter(Project.owner_kind == kind.value, Project.owner_id.in_(ids))
                .all()
            )

    for kind, ids in (
        (OwnerKind.EDUCATION, education_ids),
        (OwnerKind.PROFILE, profile_ids),
        (OwnerKind.PROJECT, project_ids),
    ):
        if ids:
            db.query(Image).filter(Image.owner_kind == kind.value, Image.owner_id.in_(ids)).delete(
                synchronize_session=False
            )
    if project_ids:
        db.query(Project).filter(Project.id.in_(project_ids)).delete(synchronize_session=False)
