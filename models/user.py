from pydantic import BaseModel, Field, EmailStr
from datetime import datetime
from uuid import uuid4

from core.time_utils import get_current_time

class User(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    email: EmailStr
    password: str # bcrypt hash, never returned to clients
    created_at: datetime = Field(default_factory=get_current_time, alias="createdAt")

    class Config:
        populate_by_name = True

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)

class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class UserPublic(BaseModel):
    id: str
    name: str
    email: EmailStr

class AuthResponse(BaseModel):
    token: str
    user: UserPublic
