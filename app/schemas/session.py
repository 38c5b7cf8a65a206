from pydantic import BaseModel, EmailStr
from typing import Optional

class LoginRequest(BaseModel):
    email: EmailStr
    name: Optional[str] = None

class SessionUser(BaseModel):
    id: str
    email: str
    name: str

class SessionResponse(BaseModel):
    user: SessionUser
    access_token: str
    token_type: str = "bearer"
