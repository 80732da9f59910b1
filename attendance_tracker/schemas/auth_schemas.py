from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class Credentials(BaseModel):
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)


class UserResponse(BaseModel):
    id: str
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session_id: str
    user_id: str
    email: str
    expires_at: datetime


class SignUpResponse(BaseModel):
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    success: bool
    message: str
