from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from booking_backend.auth import jwt_handler
from booking_backend.auth.dependencies import get_current_admin
from booking_backend.auth.passwords import verify_password
from booking_backend.database import get_db
from booking_backend.models.admin import Admin

router = APIRouter(tags=['auth'])


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AdminResponse(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    admin = db.query(Admin).filter(Admin.email == data.email).first()
    if admin is None or not verify_password(data.password, admin.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = jwt_handler.issue_admin_token(admin.email)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=AdminResponse)
def me(current_admin: Admin = Depends(get_current_admin)):
    return current_admin
