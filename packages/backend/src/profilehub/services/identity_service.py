"""Identity service — registration, login, and profile changes.

Learn: Service layer separates business logic from HTTP routing.
Routes call the service, the service calls the database and the image
store, and failures come back as the typed errors in profilehub.errors.

Two rules hold across every method:
- the password hash never leaves this module (routes get User objects,
  and the read schemas have no field for it);
- every mutation is addressed by the user id the auth gate resolved,
  never by anything the client put in the body.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from profilehub.auth.jwt import create_access_token
from profilehub.auth.password import hash_password, verify_password
from profilehub.config import Settings
from profilehub.db.models import User
from profilehub.errors import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from profilehub.services.image_store import ImageStore, image_extension

logger = structlog.get_logger()

PROFILE_FIELDS = ("name", "date_of_birth", "gender", "profile_image")


class IdentityService:
    """Business logic for accounts and profiles."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings,
        images: Optional[ImageStore] = None,
    ):
        self.db = db
        self.settings = settings
        self.images = images

    @asynccontextmanager
    async def _storage(self, event: str):
        """Turn unexpected database failures into a generic StorageError."""
        try:
            yield
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(event)
            raise StorageError()

    # ─── Registration ─────────────────────────────────────

    async def register(
        self,
        *,
        name: str,
        email: str,
        date_of_birth: str,
        gender: str,
        password: str,
    ) -> User:
        """Create an account. Duplicate emails are rejected, never overwritten.

        Learn: uniqueness is enforced by the database constraint, not a
        SELECT-then-INSERT, so two concurrent sign-ups for one address
        cannot both win.
        """
        if not all((name, email, date_of_birth, gender, password)):
            raise ValidationError()

        # bcrypt blocks; run it off the event loop
        password_hash = await asyncio.to_thread(
            hash_password, password, self.settings.bcrypt_rounds
        )
        user = User(
            name=name,
            email=email,
            date_of_birth=date_of_birth,
            gender=gender,
            password_hash=password_hash,
        )

        async with self._storage("identity.register_failed"):
            self.db.add(user)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.info("identity.duplicate_email")
                raise DuplicateIdentityError()

        logger.info("identity.registered", user_id=user.id)
        return user

    # ─── Login ────────────────────────────────────────────

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and issue a session token.

        Unknown email and wrong password raise the same error so callers
        cannot probe which addresses have accounts.
        """
        user = await self.find_by_email(email)
        if user is None:
            logger.info("identity.login_failed")
            raise InvalidCredentialsError()

        matches = await asyncio.to_thread(
            verify_password, password, user.password_hash
        )
        if not matches:
            logger.info("identity.login_failed")
            raise InvalidCredentialsError()

        token = create_access_token(self.settings, user.id)
        logger.info("identity.logged_in", user_id=user.id)
        return user, token

    # ─── Lookups ──────────────────────────────────────────

    async def find_by_email(self, email: str) -> Optional[User]:
        async with self._storage("identity.lookup_failed"):
            result = await self.db.execute(select(User).where(User.email == email))
            return result.scalars().first()

    async def get_profile(self, email: str) -> User:
        user = await self.find_by_email(email)
        if user is None:
            raise NotFoundError()
        return user

    async def get_user(self, user_id: int) -> User:
        async with self._storage("identity.lookup_failed"):
            user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError()
        return user

    # ─── Profile ──────────────────────────────────────────

    async def update_profile(self, user_id: int, changes: dict) -> User:
        """Overwrite profile fields on the caller's own record."""
        user = await self.get_user(user_id)
        for field, value in changes.items():
            if field in PROFILE_FIELDS:
                setattr(user, field, value)

        async with self._storage("identity.update_failed"):
            await self.db.commit()

        logger.info("identity.profile_updated", user_id=user_id, fields=sorted(changes))
        return user

    async def upload_profile_image(
        self, user_id: int, filename: str, data: bytes
    ) -> str:
        """Store a new avatar and point the record at it. Returns the stored path."""
        if not filename or not data:
            raise ValidationError("No file uploaded")
        if len(data) > self.settings.max_image_bytes:
            raise ValidationError("Image too large")
        image_extension(filename)

        user = await self.get_user(user_id)
        stored_path = await self.images.save(
            owner_name=user.name,
            user_id=user.id,
            filename=filename,
            data=data,
        )
        user.profile_image = stored_path

        async with self._storage("identity.image_record_failed"):
            await self.db.commit()

        logger.info("identity.image_uploaded", user_id=user_id, path=stored_path)
        return stored_path

    async def delete_profile_image(self, user_id: int) -> None:
        """Remove the avatar file (if still present) and clear the record."""
        user = await self.get_user(user_id)
        if not user.profile_image:
            raise ValidationError("No image to delete")

        removed = await self.images.delete(
            user.profile_image, owner_name=user.name, user_id=user.id
        )
        user.profile_image = None

        async with self._storage("identity.image_record_failed"):
            await self.db.commit()

        logger.info("identity.image_deleted", user_id=user_id, file_removed=removed)
