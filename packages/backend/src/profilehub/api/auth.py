"""Auth + profile API.

Learn: Routes for account and profile lifecycle:
- POST /auth/register → create an account
- POST /auth/login → email/password → session token
- GET /auth/profile/:email → public profile lookup (no auth)
- PUT /auth/profile → update own profile (bearer token)
- POST /auth/upload-profile-image → upload own avatar (bearer token)
- DELETE /auth/profile-image → remove own avatar (bearer token)

Handlers stay thin: they translate HTTP to service calls and back. Errors
raised by the service are turned into {"message": ...} responses by the
handlers in profilehub.errors.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from profilehub.auth.dependencies import CurrentIdentity, get_current_user
from profilehub.config import get_settings
from profilehub.db.engine import get_db
from profilehub.db.models import User
from profilehub.errors import ValidationError
from profilehub.schemas.user import (
    ImageUploadResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileRead,
    ProfileUpdate,
    RegisterRequest,
)
from profilehub.services.identity_service import IdentityService

router = APIRouter(prefix="/auth")


def _svc(request: Request, db: AsyncSession = Depends(get_db)) -> IdentityService:
    return IdentityService(
        db,
        settings=get_settings(request),
        images=request.app.state.image_store,
    )


def _public_url(request: Request, stored_path: Optional[str]) -> Optional[str]:
    """Absolute URL for a stored image path (absolute URLs pass through)."""
    if not stored_path:
        return None
    if stored_path.startswith("http"):
        return stored_path
    return str(request.base_url).rstrip("/") + stored_path


def _profile(request: Request, user: User) -> ProfileRead:
    return ProfileRead(
        id=user.id,
        name=user.name,
        email=user.email,
        date_of_birth=user.date_of_birth,
        gender=user.gender,
        profile_image=_public_url(request, user.profile_image),
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(body: RegisterRequest, svc: IdentityService = Depends(_svc)):
    """Create a new account. Only a confirmation is returned."""
    await svc.register(
        name=body.name,
        email=body.email,
        date_of_birth=body.date_of_birth,
        gender=body.gender,
        password=body.password,
    )
    return MessageResponse(message="User registered")


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, svc: IdentityService = Depends(_svc)):
    """Login with email and password → session token."""
    _, token = await svc.login(body.email, body.password)
    return LoginResponse(message="Login successful", token=token)


# ─── Profile ─────────────────────────────────────────────


@router.get("/profile/{email}", response_model=ProfileRead)
async def get_profile(
    email: str,
    request: Request,
    svc: IdentityService = Depends(_svc),
):
    """Public profile lookup by email. Not gated."""
    user = await svc.get_profile(email)
    return _profile(request, user)


@router.put("/profile", response_model=MessageResponse)
async def update_profile(
    body: ProfileUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: IdentityService = Depends(_svc),
):
    """Update the caller's own profile."""
    await svc.update_profile(identity.user_id, body.changes())
    return MessageResponse(message="Profile updated successfully")


# ─── Profile image ──────────────────────────────────────


@router.post("/upload-profile-image", response_model=ImageUploadResponse)
async def upload_profile_image(
    request: Request,
    profile_image: Optional[UploadFile] = File(None),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: IdentityService = Depends(_svc),
):
    """Upload (or replace) the caller's avatar."""
    if profile_image is None:
        raise ValidationError("No file uploaded")

    # one byte past the limit is enough for the service to reject it
    data = await profile_image.read(svc.settings.max_image_bytes + 1)
    stored_path = await svc.upload_profile_image(
        identity.user_id, profile_image.filename or "", data
    )
    return ImageUploadResponse(
        message="Image uploaded",
        image_url=_public_url(request, stored_path),
    )


@router.delete("/profile-image", response_model=MessageResponse)
async def delete_profile_image(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: IdentityService = Depends(_svc),
):
    """Delete the caller's avatar file and clear it from the profile."""
    await svc.delete_profile_image(identity.user_id)
    return MessageResponse(message="Image deleted")
