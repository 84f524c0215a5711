import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from database import get_db
from config import INITIAL_PARENT_PASSWORD, MIN_PASSWORD_LENGTH
from core.auth_provider import get_auth_provider
from core.security import create_access_token, get_current_user
from models.users import AppRole, User
from pydantic import BaseModel
from typing import List

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

# ✅ Login Data Models
class LoginSchema(BaseModel):
    phone_or_username: str
    password: str

class ChangePasswordSchema(BaseModel):
    new_password: str
    confirm_password: str

class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    role: str
    must_change_password: bool

class MeResponse(BaseModel):
    id: int
    phone_or_username: str
    roles: List[str]
    must_change_password: bool
    student_ids: List[int]


def primary_role(user: User) -> str:
    roles = user.role_names()
    if AppRole.ADMIN.value in roles:
        return AppRole.ADMIN.value
    return AppRole.PARENT.value


# 1. Login (admins and parents share one form)
@router.post("/login", response_model=LoginResponse)
def login(data: LoginSchema, db: Session = Depends(get_db)):
    username = data.phone_or_username.strip()
    user = db.query(User).filter(User.phone_or_username == username).first()
    if not user:
        raise HTTPException(status_code=401, detail="Invalid phone number or password")

    provider = get_auth_provider(db)
    if user.auth_id is None:
        # Account was created by an upload: the first login sets up the identity
        if data.password != INITIAL_PARENT_PASSWORD:
            raise HTTPException(status_code=401, detail="Invalid phone number or password")
        user.auth_id = provider.create_identity(data.password)
        user.must_change_password = True
        db.commit()
        logger.info("Created login identity for %s", user.phone_or_username)
    elif not provider.verify(user.auth_id, data.password):
        raise HTTPException(status_code=401, detail="Invalid phone number or password")

    role = primary_role(user)
    access_token = create_access_token(data={"sub": str(user.id), "role": role})
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "role": role,
        "must_change_password": bool(user.must_change_password),
    }


# 2. Change password (mandatory after the first parent login)
@router.post("/change-password")
def change_password(
    data: ChangePasswordSchema,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if data.new_password != data.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    if len(data.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    provider = get_auth_provider(db)
    try:
        if current_user.auth_id is None:
            current_user.auth_id = provider.create_identity(data.new_password)
        else:
            provider.set_password(current_user.auth_id, data.new_password)
        current_user.must_change_password = False
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {"message": "Password changed successfully", "must_change_password": False}


# 3. Who am I
@router.get("/me", response_model=MeResponse)
def read_me(current_user: User = Depends(get_current_user)):
    return MeResponse(
        id=current_user.id,
        phone_or_username=current_user.phone_or_username,
        roles=sorted(current_user.role_names()),
        must_change_password=bool(current_user.must_change_password),
        student_ids=[link.student_id for link in current_user.student_links],
    )
