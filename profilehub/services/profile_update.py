from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from profilehub.models.ownership import OwnerKind
from profilehub.models.user import User
from profilehub.schemas.profile import ProfileRead, ProfileUpdateForm, ProfileView, SaveProfilePayload
from profilehub.schemas.user import UserRead
from profilehub.services.images.upload import ImageUploader, UploadedImage
from profilehub.services.portfolio_service import attach_uploaded_image
from profilehub.services.profile_service import get_profile, save_profile


logger = logging.getLogger(__name__)

PROFILE_PICTURES_DIR = "profile_pictures"
SUCCESS_MESSAGE = "Profile updated successfully"
VERIFICATION_REQUIRED_STATUS = "verification-required"


class ProfileUpdateFailed(Exception):
    pass


def render_profile_view(
    db: Session,
    user: User,
    *,
    success: str | None = None,
    error: str | None = None,
    status: str | None = None,
) -> ProfileView:
    # Re-read from the store so the view shows what was actually persisted.
    db.refresh(user)
    profile = get_profile(db, user.id)
    return ProfileView(
        success=success,
        error=error,
        user=UserRead.model_validate(user),
        profile=ProfileRead.model_validate(profile) if profile is not None else None,
        status=status,
    )


def update_profile(
    db: Session,
    user: User,
    form: ProfileUpdateForm,
    image: UploadedImage | None,
    *,
    uploader: ImageUploader,
    storage_backend: str | None = None,
    flash: dict | None = None,
) -> ProfileView:
    """Apply a profile form submission and render the resulting view.

    Field changes already committed stay committed when a later step fails.
    ``flash`` is the session mapping used for pending status messages.
    """
    flash = flash if flash is not None else {}
    try:
        previous_email = user.email
        user.name = form.name
        user.email = form.email

        image_url: str | None = None
        upload = None
        if image is not None:
            upload = uploader.upload(
                image,
                storage_backend=storage_backend,
                directory=PROFILE_PICTURES_DIR,
                base_filename=image.filename,
                public=True,
            )
            if not upload.success:
                raise ProfileUpdateFailed(upload.message)
            image_url = upload.url

        email_changed = user.email != previous_email
        if email_changed:
            user.email_verified_at = None

        db.add(user)
        db.commit()
        # Only a persisted email change needs re-verification.
        if email_changed:
            flash["status"] = VERIFICATION_REQUIRED_STATUS

        if image_url is None:
            existing = get_profile(db, user.id)
            image_url = existing.image_url if existing is not None and existing.image_url else ""

        result = save_profile(
            db,
            user.id,
            SaveProfilePayload(
                fullname=form.name,
                email=form.email,
                image_url=image_url,
                description=form.description or "",
                dob=form.dob,
            ),
        )
        if not result.success:
            return render_profile_view(db, user, error=result.message, status=flash.pop("status", None))

        if upload is not None:
            profile = get_profile(db, user.id)
            attach_uploaded_image(
                db,
                OwnerKind.PROFILE,
                profile.id,
                upload,
                original_filename=image.filename,
                is_primary=True,
            )
    except Exception as exc:
        # Discard uncommitted field changes before rendering.
        db.rollback()
        logger.warning("profile.update_failed user_id=%s error=%s", user.id, exc)
        return render_profile_view(db, user, error=str(exc), status=flash.pop("status", None))

    logger.info("profile.updated user_id=%s new_image=%s", user.id, upload is not None)
    return render_profile_view(db, user, success=SUCCESS_MESSAGE, status=flash.pop("status", None))
