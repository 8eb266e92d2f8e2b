from pydantic import BaseModel, EmailStr
from marketplace_backend.interface.users import UserList


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserList
