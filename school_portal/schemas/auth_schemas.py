# school_portal/schemas/auth_schemas.py
from typing import Optional
from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class SessionUser(BaseModel):
    id: str
    name: str
    email: str
    image: Optional[str] = None
    role: str


class LoginResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    user: SessionUser


class SessionStatus(BaseModel):
    authenticated: bool
    user: Optional[SessionUser] = None
