# src/task_minder/account/account_service.py

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import hmac
import json
import logging
import os
import secrets
import sqlite3
import uuid
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import TypeVar

from ..core.streams import StateStream
from ..errors import (
    AccountCreationError,
    AccountDeletionError,
    AuthenticationError,
    LinkAccountError,
    SignOutError,
    TaskMinderError,
)
from .account_models import User

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PBKDF2_ROUNDS = 200_000


def _hash_password(password: str, salt: bytes) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ROUNDS).hex()


class LocalAccountService:
    """
    Local identity provider implementing the AccountService port.

    - accounts live in SQLite (anonymous rows have no email)
    - the signed-in user id is persisted in a small JSON session file,
      so a restart keeps the same identity
    - current_user() is a live stream; every sign-in/out pushes a new User
    """

    def __init__(self, db_path: str | Path, session_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._session_path = Path(session_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._session_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        self._user: StateStream[User] = StateStream(self._restore_session())
        logger.info(
            "Accounts ready db=%s signed_in=%s", self._db_path, self.is_user_signed_in
        )

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    email TEXT UNIQUE,
                    password_hash TEXT,
                    salt TEXT,
                    is_anonymous INTEGER NOT NULL DEFAULT 1
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _load_user(self, user_id: str) -> User | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT id, is_anonymous FROM accounts WHERE id = ?", (user_id,))
            row = cur.fetchone()
            if row is None:
                return None
            return User(user_id=str(row["id"]), is_anonymous=bool(row["is_anonymous"]))
        finally:
            conn.close()

    def _restore_session(self) -> User:
        if not self._session_path.exists():
            return User()
        try:
            data = json.loads(self._session_path.read_text("utf-8"))
            user_id = str(data.get("user_id") or "") if isinstance(data, dict) else ""
        except (OSError, ValueError):
            logger.warning("Session file unreadable, starting signed out: %s", self._session_path)
            return User()
        if not user_id:
            return User()
        user = self._load_user(user_id)
        if user is None:
            logger.warning("Session refers to unknown account %s; signed out", user_id)
            return User()
        return user

    def _persist_session(self, user: User) -> None:
        tmp = self._session_path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"user_id": user.user_id}), "utf-8")
        os.replace(tmp, self._session_path)
        with contextlib.suppress(Exception):
            os.chmod(self._session_path, 0o600)

    def _set_user(self, user: User) -> None:
        self._persist_session(user)
        self._user.set(user)
        logger.info("Current user -> %s (anonymous=%s)", user.user_id or "<none>", user.is_anonymous)

    async def _call(
        self, error_type: type[TaskMinderError], what: str, fn: Callable[..., T], *args: object
    ) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except TaskMinderError:
            raise
        except (sqlite3.Error, OSError) as e:
            raise error_type(f"{what} failed: {e}", cause=e) from e

    # ---- sync primitives (worker thread) ----

    def _insert_anonymous(self) -> User:
        user_id = uuid.uuid4().hex
        conn = self._get_conn()
        try:
            conn.execute("INSERT INTO accounts(id, is_anonymous) VALUES (?, 1)", (user_id,))
            conn.commit()
        finally:
            conn.close()
        return User(user_id=user_id, is_anonymous=True)

    def _check_credentials(self, email: str, password: str) -> User:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT id, password_hash, salt FROM accounts WHERE email = ?",
                (email.strip().lower(),),
            )
            row = cur.fetchone()
        finally:
            conn.close()
        if row is None or not row["salt"]:
            raise AuthenticationError("Authentication failed: unknown email or wrong password")
        expected = _hash_password(password, bytes.fromhex(row["salt"]))
        if not hmac.compare_digest(expected, str(row["password_hash"])):
            raise AuthenticationError("Authentication failed: unknown email or wrong password")
        return User(user_id=str(row["id"]), is_anonymous=False)

    def _attach_credentials(self, user_id: str, email: str, password: str) -> User:
        salt = secrets.token_bytes(16)
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            try:
                cur.execute(
                    """
                    UPDATE accounts
                    SET email = ?, password_hash = ?, salt = ?, is_anonymous = 0
                    WHERE id = ?
                    """,
                    (email.strip().lower(), _hash_password(password, salt), salt.hex(), user_id),
                )
            except sqlite3.IntegrityError as e:
                raise LinkAccountError(
                    "Linking account failed: email already in use", cause=e
                ) from e
            conn.commit()
            if cur.rowcount != 1:
                raise LinkAccountError("Linking account failed: current account no longer exists")
        finally:
            conn.close()
        return User(user_id=user_id, is_anonymous=False)

    def _remove(self, user_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM accounts WHERE id = ?", (user_id,))
            conn.commit()
        finally:
            conn.close()

    # ---- public API (AccountService) ----

    def current_user(self) -> AsyncIterator[User]:
        return self._user.subscribe()

    @property
    def user(self) -> User:
        return self._user.value

    @property
    def current_user_id(self) -> str:
        return self._user.value.user_id

    @property
    def is_user_signed_in(self) -> bool:
        return bool(self._user.value.user_id)

    async def authenticate(self, email: str, password: str) -> None:
        user = await self._call(
            AuthenticationError, "Authentication", self._check_credentials, email, password
        )
        self._set_user(user)

    async def create_anonymous_account(self) -> None:
        user = await self._call(
            AccountCreationError, "Anonymous account creation", self._insert_anonymous
        )
        self._set_user(user)

    async def link_account(self, email: str, password: str) -> None:
        if not self.is_user_signed_in:
            raise LinkAccountError("Linking account failed: nobody is signed in")
        user = await self._call(
            LinkAccountError,
            "Linking account",
            self._attach_credentials,
            self.current_user_id,
            email,
            password,
        )
        self._set_user(user)

    async def delete_account(self) -> None:
        if not self.is_user_signed_in:
            raise AccountDeletionError("Account deletion failed: nobody is signed in")
        await self._call(AccountDeletionError, "Account deletion", self._remove, self.current_user_id)
        self._set_user(User())

    async def sign_out(self) -> None:
        """
        Sign out; an anonymous identity is deleted first.
        A fresh anonymous identity is created right after.
        """
        current = self._user.value
        try:
            if current.user_id and current.is_anonymous:
                await asyncio.to_thread(self._remove, current.user_id)
            self._set_user(User())
            await self.create_anonymous_account()
        except (TaskMinderError, sqlite3.Error, OSError) as e:
            raise SignOutError(f"Sign out failed: {e}", cause=e) from e
