"""Form models and client-side validation.

Validation only covers required fields and password confirmation; anything
else (password policy, unique email, permissions) is left to the provider.
A failed validation never reaches the provider.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PASSWORDS_DO_NOT_MATCH = "Passwords do not match."


class FormError(ValueError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


class CreateUserForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    role: Literal["user", "admin"] = "user"

    def cleaned(self) -> dict[str, Any]:
        if _blank(self.name) or _blank(self.email) or not self.password:
            raise FormError("Name, email, and password are required.")
        if self.password != self.confirm_password:
            raise FormError(PASSWORDS_DO_NOT_MATCH)
        return {
            "name": self.name.strip(),
            "email": self.email.strip(),
            "password": self.password,
            "role": self.role,
        }


class SetRoleForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: Optional[Literal["user", "admin"]] = None

    def cleaned(self) -> str:
        if not self.role:
            raise FormError("Select a role.")
        return self.role


class SetPasswordForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    new_password: str = ""
    confirm_password: str = ""

    def cleaned(self) -> str:
        if _blank(self.new_password):
            raise FormError("New password is required.")
        if self.new_password != self.confirm_password:
            raise FormError(PASSWORDS_DO_NOT_MATCH)
        return self.new_password.strip()


class BanForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: Optional[str] = None
    expires_in_seconds: Optional[int] = Field(default=None, ge=1)

    def cleaned(self) -> dict[str, Any]:
        reason = (self.reason or "").strip()
        return {"ban_reason": reason or None, "ban_expires_in": self.expires_in_seconds}


class ChangePasswordForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    current_password: str = ""
    new_password: str = ""
    confirm_password: str = ""
    revoke_other_sessions: bool = False

    def cleaned(self) -> dict[str, Any]:
        if not self.current_password or not self.new_password or not self.confirm_password:
            raise FormError("Fill out all password fields.")
        if self.new_password != self.confirm_password:
            raise FormError(PASSWORDS_DO_NOT_MATCH)
        return {
            "current_password": self.current_password,
            "new_password": self.new_password,
            "revoke_other_sessions": self.revoke_other_sessions,
        }


class NameForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = ""

    def cleaned(self) -> str:
        name = self.name.strip()
        if not name:
            raise FormError("Name cannot be empty.")
        return name


class ImageForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    image: Optional[str] = Field(default=None, description="URL or data URI; null clears the avatar")

    def cleaned(self) -> Optional[str]:
        image = (self.image or "").strip()
        if not image:
            return None
        if not is_image_reference(image):
            raise FormError("Failed to read the selected image.")
        return image


def is_image_reference(value: str) -> bool:
    text = value.strip()
    if text.startswith("data:"):
        return text.startswith("data:image/") and "," in text
    return text.startswith(("http://", "https://", "/"))


class SignUpForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    image: Optional[str] = None

    def cleaned(self) -> dict[str, Any]:
        if _blank(self.name) or _blank(self.email) or not self.password:
            raise FormError("Name, email, and password are required.")
        if self.password != self.confirm_password:
            raise FormError(PASSWORDS_DO_NOT_MATCH)
        return {
            "name": self.name.strip(),
            "email": self.email.strip(),
            "password": self.password,
            "image": self.image or None,
        }
