from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marketplace.db import get_db
from marketplace.schemas.user_schema import UserIn, UserOut
from marketplace.services.account_service import AccountService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", summary="Create user", response_model=UserOut, status_code=201)
def create_user(payload: UserIn, db: Session = Depends(get_db)):
    return AccountService(db).create_user(payload.username, payload.account_balance)


@router.get("", summary="List users", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db)):
    return AccountService(db).list_users()


@router.get("/{user_id}", summary="Get user", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return AccountService(db).get_user(user_id)


@router.delete("/{user_id}", summary="Delete user")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    AccountService(db).delete_user(user_id)
    return {"ok": True}
