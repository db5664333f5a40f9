from __future__ import annotations

import functools
from typing import Any, Callable, Dict, Optional, TypeVar

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from config import AppConfig
from core.exceptions import DataAccessError, NotFoundError, StoreUnavailableError
from core.logging import get_logger
from data.queries import Query
from data.store import Page, Snapshot

logger = get_logger(__name__)

T = TypeVar("T")


def _wrap_errors(fn: Callable[..., T]) -> Callable[..., T]:
    """Surface SDK failures as DataAccessError so callers handle one type."""

    @functools.wraps(fn)
    def wrapper(self: "FirestoreStore", collection: Any, *args: Any, **kwargs: Any) -> T:
        name = collection.collection if isinstance(collection, Query) else collection
        try:
            return fn(self, collection, *args, **kwargs)
        except NotFoundError:
            raise
        except google_exceptions.NotFound as e:
            doc_id = str(args[0]) if args else "?"
            raise NotFoundError("Document", doc_id, collection=name) from e
        except google_exceptions.GoogleAPICallError as e:
            logger.error("firestore_call_failed", op=fn.__name__, collection=name, error=str(e))
            raise DataAccessError(f"Firestore {fn.__name__} on {name} failed: {e}") from e

    return wrapper


def _init_app(cfg: AppConfig) -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    if cfg.firebase_credentials:
        cred = credentials.Certificate(cfg.firebase_credentials)
    else:
        cred = credentials.ApplicationDefault()
    options = {"projectId": cfg.firebase_project_id} if cfg.firebase_project_id else None
    return firebase_admin.initialize_app(cred, options)


class FirestoreStore:
    """
    Hosted document store (Cloud Firestore via firebase-admin).

    Cursors are the last DocumentSnapshot of a page, which is what
    `start_after` expects.
    """

    source = "firestore"

    def __init__(self, cfg: AppConfig, client: Optional[Any] = None):
        self.cfg = cfg
        if client is not None:
            self._db = client
            return
        if not cfg.live_configured:
            raise StoreUnavailableError(
                "Missing FIREBASE_PROJECT_ID / FIREBASE_CREDENTIALS for live data. "
                "Set them in .env, or keep mock mode on."
            )
        try:
            self._db = firestore.client(app=_init_app(cfg))
        except (ValueError, OSError, auth_exceptions.GoogleAuthError, google_exceptions.GoogleAPIError) as e:
            raise StoreUnavailableError(f"Could not initialize Firestore: {e}") from e

    def _build(self, q: Query, start_after: Optional[Any] = None):
        ref = self._db.collection(q.collection)
        for name, op, value in q.filters:
            ref = ref.where(filter=FieldFilter(name, op, value))
        if q.order_by:
            direction = firestore.Query.DESCENDING if q.descending else firestore.Query.ASCENDING
            ref = ref.order_by(q.order_by, direction=direction)
        if start_after is not None:
            ref = ref.start_after(start_after)
        if q.limit:
            ref = ref.limit(q.limit)
        return ref

    @_wrap_errors
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snap = self._db.collection(collection).document(doc_id).get()
        return snap.to_dict() if snap.exists else None

    @_wrap_errors
    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._db.collection(collection).document(doc_id).set(data)

    @_wrap_errors
    def add(self, collection: str, data: Dict[str, Any]) -> str:
        _, ref = self._db.collection(collection).add(data)
        return ref.id

    @_wrap_errors
    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._db.collection(collection).document(doc_id).update(data)

    @_wrap_errors
    def delete(self, collection: str, doc_id: str) -> None:
        self._db.collection(collection).document(doc_id).delete()

    @_wrap_errors
    def query(self, q: Query, start_after: Optional[Any] = None) -> Page:
        snaps = list(self._build(q, start_after).stream())
        return Page(
            docs=[Snapshot(s.id, s.to_dict() or {}) for s in snaps],
            cursor=snaps[-1] if snaps else None,
        )

    @_wrap_errors
    def count(self, q: Query) -> int:
        result = self._build(q.with_limit(None)).count().get()
        return int(result[0][0].value) if result and result[0] else 0


def get_firestore_store(cfg: AppConfig) -> FirestoreStore:
    return FirestoreStore(cfg=cfg)
