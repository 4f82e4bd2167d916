from fastapi import APIRouter, Depends, Request

from paperbank.core.security import get_current_user, login_session, logout_session
from paperbank.models.orm import User
from paperbank.models.schemas import CamelModel, LoginRequest, RegisterRequest, UserSummary
from paperbank.services.accounts import authenticate, register_user
from paperbank.storage import Storage, get_storage

router = APIRouter()


class Registered(CamelModel):
    message: str
    user_id: int


class UserEnvelope(CamelModel):
    user: UserSummary


class Message(CamelModel):
    message: str


@router.post("/register", response_model=Registered, status_code=201)
def register(payload: RegisterRequest, storage: Storage = Depends(get_storage)):
    user = register_user(storage, payload)
    return Registered(message="User registered successfully", user_id=user.id)


@router.post("/login", response_model=UserEnvelope)
def login(payload: LoginRequest, request: Request, storage: Storage = Depends(get_storage)):
    user = authenticate(storage, payload.email, payload.password)
    login_session(request, user)
    return UserEnvelope(user=UserSummary.model_validate(user))


@router.post("/logout", response_model=Message)
def logout(request: Request):
    logout_session(request)
    return Message(message="Logged out successfully")


@router.get("/me", response_model=UserEnvelope)
def me(user: User = Depends(get_current_user)):
    return UserEnvelope(user=UserSummary.model_validate(user))
