"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from tournaments.models import UserProfile, UserRole


class UserRegistrationSchema(BaseModel):
    """Schema for user registration request."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, max_length=128, description="User's password")
    name: str = Field(..., min_length=1, max_length=60, description="Display name")
    role: UserRole = Field(..., description="Admin, Judge or Debater")
    tournament_code: str | None = Field(
        default=None, description="Tournament to join straight away"
    )

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, password: str) -> str:
        """Validate password meets security requirements."""
        errors = []

        if not any(c.isupper() for c in password):
            errors.append("Password must contain at least one uppercase letter")

        if not any(c.islower() for c in password):
            errors.append("Password must contain at least one lowercase letter")

        if not any(c.isdigit() for c in password):
            errors.append("Password must contain at least one number")

        if errors:
            raise ValueError(f"Password validation failed: {'; '.join(errors)}")

        return password

    @field_validator("name")
    @classmethod
    def validate_name(cls, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValueError("Name cannot be blank")
        return name

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "judge@example.com",
                "password": "SecurePass123",
                "name": "Pat Judge",
                "role": "Judge",
                "tournament_code": "AB12CD",
            }
        }
    }


class LoginSchema(BaseModel):
    """Schema for user login request."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")


class JoinTournamentSchema(BaseModel):
    """Schema for joining a tournament by code."""

    code: str = Field(..., min_length=4, max_length=12, description="Tournament code")


class AuthResponse(BaseModel):
    """Response for a successful registration or login."""

    message: str
    access_token: str
    token_type: str = "bearer"
    profile: UserProfile


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str = Field(..., description="Response message")
