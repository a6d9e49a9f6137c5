from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class EmailCodeRequest(BaseModel):
    email: str
    code: str = Field(min_length=6, max_length=6)


class EmailRequest(BaseModel):
    email: str


class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(default=None, alias="refreshToken")


class RoleUpdateRequest(BaseModel):
    role: str


def success(message: str | None = None, data: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body
