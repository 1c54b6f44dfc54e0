# auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from profilehub.database import get_db
from profilehub.models.user import User
from profilehub.schemas.user import Token, UserCreate, UserLogin, UserRead
from profilehub.utils.jwt_handler import create_access_token
from profilehub.utils.password_hash import hash_password, verify_password


logger = logging.getLogger(__name__)

router = APIRouter()


def _find_user(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)) -> UserRead:
    if _find_user(db, payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    account = User(email=payload.email, name=payload.name, password=hash_password(payload.password))
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("auth.registered user_id=%s", account.id)
    return UserRead.model_validate(account)


@router.post("/login", response_model=Token)
def login(payload: UserLogin, db: Session = Depends(get_db)) -> Token:
    account = _find_user(db, payload.email)
    if account is None or not verify_password(payload.password, account.password):
        logger.info("auth.login_rejected email=%s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return Token(access_token=create_access_token(account.id), token_type="bearer")
