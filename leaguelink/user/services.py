"""Service layer for user profiles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from leaguelink.core.constants import USERS_COLLECTION
from leaguelink.errors import DuplicateResourceError, NotFoundError
from leaguelink.utils import upload_file

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from werkzeug.datastructures import FileStorage

    from .models import User

PROFILE_FIELDS = ("username", "name", "bio")
PUBLIC_PROFILE_FIELDS = ("username", "name", "bio", "profilePictureUrl")


def smart_display_name(user: dict[str, Any]) -> str:
    """Pick the most readable name available on a user document."""
    if user.get("username"):
        return str(user["username"])
    if user.get("name"):
        return str(user["name"])
    email = user.get("email") or ""
    if "@" in email:
        return email.split("@", 1)[0]
    return "Player"


class UserService:
    """Handles business logic and data access for user profiles."""

    @staticmethod
    def load_session_user(
        decoded_token: dict[str, Any], db: Client | None = None
    ) -> User:
        """Return the profile for a verified token, creating it on first sight."""
        if db is None:
            db = firestore.client()
        uid = decoded_token["uid"]
        ref = db.collection(USERS_COLLECTION).document(uid)
        doc = cast(Any, ref.get())
        if doc.exists:
            user = cast("User", doc.to_dict() or {})
        else:
            user = cast(
                "User",
                {
                    "email": decoded_token.get("email", ""),
                    "name": decoded_token.get("name", ""),
                },
            )
            user["username"] = smart_display_name(cast(dict, user))
            ref.set({**user, "createdAt": firestore.SERVER_TIMESTAMP})
            current_app.logger.info(f"Created profile for new user {uid}")
        user["uid"] = uid
        return user

    @staticmethod
    def get_user(user_id: str, db: Client | None = None) -> User:
        """Fetch a user profile by id."""
        if db is None:
            db = firestore.client()
        doc = cast(Any, db.collection(USERS_COLLECTION).document(user_id).get())
        if not doc.exists:
            raise NotFoundError("User not found.")
        user = cast("User", doc.to_dict() or {})
        user["uid"] = doc.id
        return user

    @staticmethod
    def check_username_availability(
        username: str, exclude_uid: str | None = None, db: Client | None = None
    ) -> bool:
        """Check if a username is free (ignoring ``exclude_uid``'s own profile)."""
        if db is None:
            db = firestore.client()
        existing = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("username", "==", username))
            .stream()
        )
        return all(doc.id == exclude_uid for doc in existing if doc.exists)

    @staticmethod
    def update_profile(
        user_id: str, update_data: dict[str, Any], db: Client | None = None
    ) -> User:
        """Update whitelisted profile fields and return the fresh profile."""
        if db is None:
            db = firestore.client()
        updates = {
            k: v for k, v in update_data.items() if k in PROFILE_FIELDS and v is not None
        }
        username = updates.get("username")
        if username and not UserService.check_username_availability(
            username, exclude_uid=user_id, db=db
        ):
            raise DuplicateResourceError("Username already exists.")

        if updates:
            updates["updatedAt"] = firestore.SERVER_TIMESTAMP
            db.collection(USERS_COLLECTION).document(user_id).update(updates)
        return UserService.get_user(user_id, db=db)

    @staticmethod
    def upload_profile_picture(
        user_id: str, file_storage: FileStorage, db: Client | None = None
    ) -> str:
        """Upload a profile picture and store its public URL on the profile."""
        if db is None:
            db = firestore.client()
        url = upload_file(file_storage, f"profile_pictures/{user_id}")
        db.collection(USERS_COLLECTION).document(user_id).update(
            {"profilePictureUrl": url}
        )
        return url

    @staticmethod
    def delete_profile_picture(user_id: str, db: Client | None = None) -> User:
        """Clear the profile picture URL and return the profile."""
        if db is None:
            db = firestore.client()
        UserService.get_user(user_id, db=db)
        db.collection(USERS_COLLECTION).document(user_id).update(
            {"profilePictureUrl": ""}
        )
        return UserService.get_user(user_id, db=db)

    @staticmethod
    def get_public_profile(username: str, db: Client | None = None) -> dict[str, Any]:
        """Look a player up by username, leaving out private fields like e-mail."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("username", "==", username))
            .limit(1)
            .stream()
        )
        for doc in docs:
            if doc.exists:
                data = doc.to_dict() or {}
                profile = {k: data.get(k, "") for k in PUBLIC_PROFILE_FIELDS}
                profile["uid"] = doc.id
                return profile
        raise NotFoundError("User not found.")
