"""Pydantic schemas for registration, login and profiles.

Learn: Pydantic v2 models validate request/response data. Separate
input schemas from read schemas; the read schema has no password field
at all, so the hash cannot leak through a response by accident.

The mobile client speaks camelCase (dateOfBirth, profileImage); the
older client sent dob / profile_image, which are still accepted.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=1, max_length=255)
    date_of_birth: str = Field(
        ...,
        min_length=1,
        max_length=32,
        validation_alias=AliasChoices("dateOfBirth", "dob", "date_of_birth"),
    )
    gender: str = Field(..., min_length=1, max_length=32)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own record.

    Learn: anything else in the body (an "id", an "email") is ignored —
    the record to update is chosen by the token, not the payload.
    Omitted fields are left untouched; profileImage may be set to null.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[str] = Field(
        None,
        min_length=1,
        max_length=32,
        validation_alias=AliasChoices("dateOfBirth", "dob", "date_of_birth"),
    )
    gender: Optional[str] = Field(None, min_length=1, max_length=32)
    profile_image: Optional[str] = Field(
        None,
        max_length=512,
        validation_alias=AliasChoices("profileImage", "profile_image"),
    )

    def changes(self) -> dict:
        """Only the fields the client actually sent."""
        changes = self.model_dump(exclude_unset=True)
        # name / dob / gender are NOT NULL columns; null means "leave it"
        for required in ("name", "date_of_birth", "gender"):
            if changes.get(required, "") is None:
                changes.pop(required)
        return changes


class ProfileRead(BaseModel):
    id: int
    name: str
    email: str
    date_of_birth: str = Field(alias="dateOfBirth")
    gender: str
    profile_image: Optional[str] = Field(None, alias="profileImage")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MessageResponse(BaseModel):
    message: str


class LoginResponse(MessageResponse):
    token: str


class ImageUploadResponse(MessageResponse):
    image_url: str = Field(alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True)
