from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from core.auth import AuthUser, get_current_user, verify_password, create_access_token
from core.config import logger
from core.database import get_db
from core.errors import Unauthorized, NotFound
from models.user import User
from utils.response import success_response

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def check_username(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("Username is required")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """
    Sign in with name + password.
    Returns the user (without the password hash) and a bearer token.
    """
    user = db.query(User).filter(User.name == data.username).first()
    # Same message for unknown name and wrong password
    if not user or not verify_password(data.password, user.password_hash):
        logger.info(f"Failed login for '{data.username}'")
        raise Unauthorized("Invalid username or password")

    token = create_access_token(user.id, user.role, user.email)
    logger.info(f"User {user.id} logged in")
    return success_response({"user": user.to_dict(), "token": token}, "Login successful")


@router.get("/me")
def me(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    record = db.query(User).filter(User.id == user.id).first()
    if not record:
        raise NotFound("User not found")
    return success_response({"user": record.to_dict()}, "User profile retrieved successfully")
