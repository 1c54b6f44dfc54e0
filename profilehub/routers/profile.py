# profile.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from profilehub.database import get_db
from profilehub.models.user import User
from profilehub.routers.dependencies import get_current_user, get_flash, get_image_uploader
from profilehub.schemas.profile import ProfileUpdateForm, ProfileView
from profilehub.services.images.upload import ImageUploader
from profilehub.services.profile_service import soft_delete_profile
from profilehub.services.profile_update import render_profile_view, update_profile


router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileView)
def edit_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    flash: dict = Depends(get_flash),
) -> ProfileView:
    return render_profile_view(db, current_user, status=flash.pop("status", None))


@router.post("", response_model=ProfileView)
def submit_profile(
    name: str = Form(...),
    email: str = Form(...),
    description: Optional[str] = Form(None),
    dob: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: ImageUploader = Depends(get_image_uploader),
    flash: dict = Depends(get_flash),
) -> ProfileView:
    try:
        form = ProfileUpdateForm(name=name, email=email, description=description, dob=dob)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc

    # Browsers send an empty part when the file input is left blank.
    if image is not None and not image.filename:
        image = None
    try:
        return update_profile(db, current_user, form, image, uploader=uploader, flash=flash)
    finally:
        if image is not None:
            image.file.close()


@router.delete("", response_model=ProfileView)
def delete_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProfileView:
    if not soft_delete_profile(db, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return render_profile_view(db, current_user, success="Profile deleted")
