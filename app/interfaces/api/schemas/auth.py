"""Authentication related schemas."""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class Token(BaseModel):
    access_token: str
    token_type: str
    role: str


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Literal["agent", "enterprise"] = Field(
        ..., description="Tipo de cuenta: agente freelance o empresa"
    )
