"""
Thin sign-in against the hosted identity service.

Live mode posts to the identity REST endpoint and loads the profile (name,
role) from the `users` collection. Mock mode accepts the seeded demo accounts
with any non-empty password.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from config import AppConfig
from core.exceptions import AuthError, NotFoundError, ValidationError
from core.logging import get_logger
from data import queries
from data.models import User
from data.store import DocumentStore

logger = get_logger(__name__)

IDENTITY_URL = "https://identitytoolkit.googleapis.com/v1/accounts"

# identity service error codes -> user-facing text
_AUTH_MESSAGES = {
    "EMAIL_NOT_FOUND": "Invalid email or password",
    "INVALID_PASSWORD": "Invalid email or password",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password",
    "USER_DISABLED": "This account has been disabled",
    "EMAIL_EXISTS": "An account with this email already exists",
    "WEAK_PASSWORD": "Password should be at least 6 characters",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts, try again later",
}


class AuthClient:
    def __init__(self, cfg: AppConfig, store: DocumentStore, session: Optional[requests.Session] = None,
                 now: Callable[[], datetime] = datetime.now):
        self.cfg = cfg
        self.store = store
        self._http = session or requests.Session()
        self._now = now

    @property
    def is_mock(self) -> bool:
        return self.store.source == "mock"

    def sign_in(self, email: str, password: str) -> User:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required",
                                  errors={"email": "Email is required"} if not email else {"password": "Password is required"})
        if self.is_mock:
            user = self._find_by_email(email)
            if user is None:
                logger.info("sign_in_rejected", email=email, source="mock")
                raise AuthError("Invalid email or password")
            logger.info("sign_in", uid=user.id, role=user.role, source="mock")
            return user

        payload = self._post("signInWithPassword", {"email": email, "password": password, "returnSecureToken": True})
        uid = payload["localId"]
        data = self.store.get(queries.USERS, uid)
        if data is None:
            # first sign-in for an account created outside the app
            data = {"email": email, "role": "user", "name": payload.get("displayName", "")}
            self.store.set(queries.USERS, uid, data)
        user = User.from_document(uid, data)
        logger.info("sign_in", uid=uid, role=user.role, source=self.store.source)
        return user

    def register(self, email: str, password: str, name: str) -> User:
        """New accounts always start with the `user` role."""
        email = (email or "").strip().lower()
        if not email or not password or not (name or "").strip():
            raise ValidationError("Name, email and password are required")
        if self.is_mock:
            if self._find_by_email(email) is not None:
                raise AuthError(_AUTH_MESSAGES["EMAIL_EXISTS"])
            uid = f"user_{int(self._now().timestamp() * 1000)}"
        else:
            uid = self._post("signUp", {"email": email, "password": password, "returnSecureToken": True})["localId"]
        self.store.set(queries.USERS, uid, {"email": email, "role": "user", "name": name.strip(), "createdAt": self._now()})
        logger.info("user_registered", uid=uid, source=self.store.source)
        return User.from_document(uid, self.store.get(queries.USERS, uid))

    def _find_by_email(self, email: str) -> Optional[User]:
        page = self.store.query(queries.q_users().where("email", "==", email))
        if not page.docs:
            return None
        return User.from_document(page.docs[0].id, page.docs[0].data)

    def _post(self, action: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if not self.cfg.firebase_web_api_key:
            raise AuthError("Missing FIREBASE_WEB_API_KEY for live sign-in. Set it in .env, or keep mock mode on.")
        try:
            resp = self._http.post(
                f"{IDENTITY_URL}:{action}",
                params={"key": self.cfg.firebase_web_api_key},
                json=body,
                timeout=30,
            )
        except requests.RequestException as e:
            logger.error("identity_request_failed", action=action, error=str(e))
            raise AuthError(f"Could not reach the sign-in service: {type(e).__name__}") from e
        if resp.status_code >= 300:
            code = ""
            try:
                code = resp.json().get("error", {}).get("message", "")
            except ValueError:
                pass
            # codes may carry a detail suffix, e.g. "WEAK_PASSWORD : Password should be..."
            key = code.split(" ")[0] if code else ""
            logger.info("identity_rejected", action=action, status=resp.status_code, code=key)
            raise AuthError(_AUTH_MESSAGES.get(key, "Sign-in failed"), details={"code": key})
        return resp.json()


class UserRepository:
    """Admin-only user management over the `users` collection."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def list(self) -> List[User]:
        page = self.store.query(queries.q_users())
        return sorted((User.from_document(d.id, d.data) for d in page.docs), key=lambda u: u.email)

    def update_profile(self, acting: User, name: str) -> User:
        """Anyone may rename themselves; nothing else about the account changes."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", errors={"name": "Name is required"})
        if self.store.get(queries.USERS, acting.id) is None:
            raise NotFoundError("User", acting.id, collection=queries.USERS)
        self.store.update(queries.USERS, acting.id, {"name": name})
        logger.info("profile_updated", uid=acting.id)
        return User.from_document(acting.id, self.store.get(queries.USERS, acting.id))

    def update_user(self, acting: User, uid: str, name: str, role: str) -> User:
        """Admin edit of another account's name and role in one write."""
        self._require_admin(acting)
        name = (name or "").strip()
        errors = {}
        if not name:
            errors["name"] = "Name is required"
        if role not in ("admin", "user"):
            errors["role"] = "must be admin or user"
        if errors:
            raise ValidationError("User details are invalid", errors=errors)
        if self.store.get(queries.USERS, uid) is None:
            raise NotFoundError("User", uid, collection=queries.USERS)
        self.store.update(queries.USERS, uid, {"name": name, "role": role})
        logger.info("user_updated", uid=uid, role=role, by=acting.id)
        return User.from_document(uid, self.store.get(queries.USERS, uid))

    def delete(self, acting: User, uid: str) -> str:
        self._require_admin(acting)
        if uid == acting.id:
            raise ValidationError("You cannot delete your own account")
        if self.store.get(queries.USERS, uid) is None:
            raise NotFoundError("User", uid, collection=queries.USERS)
        self.store.delete(queries.USERS, uid)
        logger.info("user_deleted", uid=uid, by=acting.id)
        return uid

    @staticmethod
    def _require_admin(acting: User) -> None:
        if not acting.is_admin:
            raise AuthError("Only admins can manage users")


def filter_users(users: List[User], term: str) -> List[User]:
    """Case-insensitive substring match on name or email."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(users)
    return [u for u in users if needle in u.name.lower() or needle in u.email.lower()]
