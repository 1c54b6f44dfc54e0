# dependencies.py
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from profilehub.config import get_settings
from profilehub.database import get_db
from profilehub.models.user import User
from profilehub.services.images.upload import ImageUploader, build_image_uploader
from profilehub.utils.jwt_handler import decode_access_token


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user_id = decode_access_token(token)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_image_uploader(request: Request) -> ImageUploader:
    # Built once per app; tests swap it through dependency_overrides.
    uploader = getattr(request.app.state, "image_uploader", None)
    if uploader is None:
        uploader = build_image_uploader(get_settings())
        request.app.state.image_uploader = uploader
    return uploader


def get_flash(request: Request) -> dict:
    """Session mapping holding pending status messages."""
    return request.session
