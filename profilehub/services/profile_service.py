# profile_service.py
from datetime import datetime, timezone
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from profilehub.models.profile import Profile
from profilehub.schemas.profile import SaveProfilePayload, SaveProfileResult


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_profile(db: Session, user_id: int) -> Profile | None:
    return (
        db.query(Profile)
        .filter(Profile.user_id == user_id, Profile.deleted_at.is_(None))
        .first()
    )


def _apply_payload(record: Profile, payload: SaveProfilePayload) -> None:
    record.fullname = payload.fullname
    record.email = payload.email
    record.image_url = payload.image_url
    record.description = payload.description
    record.dob = payload.dob
    # Saving through the owner key revives a soft-deleted profile.
    record.deleted_at = None


def _upsert(db: Session, user_id: int, payload: SaveProfilePayload) -> Profile:
    record = (
        db.query(Profile)
        .filter(Profile.user_id == user_id)
        .with_for_update()
        .first()
    )
    if record is None:
        record = Profile(user_id=user_id)
        db.add(record)
    _apply_payload(record, payload)
    db.commit()
    return record


def save_profile(db: Session, user_id: int, payload: SaveProfilePayload) -> SaveProfileResult:
    """Insert or update the profile owned by ``user_id``.

    Persistence errors are rolled back and reported in the result instead of
    being raised. A concurrent insert for the same owner loses on the unique
    ``user_id`` constraint and is retried once as an update.
    """
    try:
        try:
            _upsert(db, user_id, payload)
        except IntegrityError:
            db.rollback()
            logger.info("profile.save_retry user_id=%s", user_id)
            _upsert(db, user_id, payload)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("profile.save_failed user_id=%s error=%s", user_id, exc)
        return SaveProfileResult(success=False, message=str(exc))

    logger.info("profile.saved user_id=%s", user_id)
    return SaveProfileResult(success=True, message="Profile saved successfully")


def soft_delete_profile(db: Session, user_id: int) -> bool:
    record = get_profile(db, user_id)
    if record is None:
        return False
    record.deleted_at = _utc_now()
    db.commit()
    return True
