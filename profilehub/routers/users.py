# users.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from profilehub.database import get_db
from profilehub.models.user import User
from profilehub.routers.dependencies import get_current_user
from profilehub.schemas.user import DeleteAccountRequest, UserRead
from profilehub.services.account_service import InvalidPassword, delete_account


router = APIRouter()


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)


@router.delete("/me", status_code=status.HTTP_303_SEE_OTHER, response_class=RedirectResponse)
def destroy_current_user(
    payload: DeleteAccountRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RedirectResponse:
    try:
        delete_account(db, current_user, payload.password)
    except InvalidPassword as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    request.session.clear()
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
