# Overview: Till users; bcrypt password hashing, lookup and login.

"""
User Service

Every stock adjustment and sale is attributed to a user id, so users are
never hard-deleted while the UI still refers to them by id; deleting only
removes the account from the list, past records keep the id they were
written with.

Passwords are hashed with bcrypt (cost factor BCRYPT_ROUNDS) and never leave
the service: User.to_dict() omits the hash unless storage asks for it.
"""

from __future__ import annotations

import re

import bcrypt

from ..models import User, new_id
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import store_mutation
from .pos_store import USERS_KEY

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
ROLES = {ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER}

BCRYPT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def _validate_role(role: str) -> str:
    role = (role or "").strip().lower()
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(ROLES))}")
    return role


def get_user_by_username(store, username: str) -> User | None:
    wanted = (username or "").strip().lower()
    for user in store.users:
        if user.username.lower() == wanted:
            return user
    return None


def require_user(store, user_id: str) -> User:
    user = store.find_user(user_id)
    if user is None:
        raise NotFoundError("User not found", details={"user_id": user_id})
    return user


def list_users(store) -> list[User]:
    return list(store.users)


def add_user(store, *, username: str, name: str, role: str, password: str) -> User:
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")
    role = _validate_role(role)
    password_hash = hash_password(password)

    with store_mutation(store):
        if get_user_by_username(store, username) is not None:
            raise ConflictError("Username already exists", details={"username": username})
        user = User(
            id=new_id(),
            username=username,
            name=(name or "").strip() or username,
            role=role,
            password_hash=password_hash,
            created_at=store.now(),
        )
        store.users.append(user)
        store.persist(USERS_KEY)
        return user


_UPDATABLE = {"username", "name", "role", "password", "is_active"}


def update_user(store, user_id: str, updates: dict) -> User:
    if not isinstance(updates, dict):
        raise ValidationError("Invalid JSON payload")
    for key in updates:
        if key not in _UPDATABLE:
            raise ValidationError(f"Field not allowed: {key}")

    changes = {}
    if "name" in updates:
        changes["name"] = (updates["name"] or "").strip()
        if not changes["name"]:
            raise ValidationError("name cannot be blank")
    if "role" in updates:
        changes["role"] = _validate_role(updates["role"])
    if "is_active" in updates:
        if not isinstance(updates["is_active"], bool):
            raise ValidationError("is_active must be true or false")
        changes["is_active"] = updates["is_active"]
    if "password" in updates:
        changes["password_hash"] = hash_password(updates["password"])
    if "username" in updates:
        changes["username"] = (updates["username"] or "").strip()
        if not changes["username"]:
            raise ValidationError("username cannot be blank")

    with store_mutation(store):
        user = require_user(store, user_id)
        if "username" in changes:
            other = get_user_by_username(store, changes["username"])
            if other is not None and other.id != user.id:
                raise ConflictError("Username already exists", details={"username": changes["username"]})
        for key, value in changes.items():
            setattr(user, key, value)
        store.persist(USERS_KEY)
        return user


def delete_user(store, user_id: str) -> None:
    with store_mutation(store):
        user = require_user(store, user_id)
        store.users.remove(user)
        store.persist(USERS_KEY)


def authenticate(store, username: str, password: str) -> User | None:
    """The active user these credentials belong to, else None."""
    user = get_user_by_username(store, username)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
