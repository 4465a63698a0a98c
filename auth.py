"""
Session and credential helpers.

The session cookie carries ``user_id``, ``buyer_id`` and ``vendor_id``; the
dependencies below gate routes on their presence.
"""
import re

from fastapi import HTTPException, Request
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8
_SPECIAL_CHARACTERS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')
_STRENGTH_LABELS = ("Very Weak", "Weak", "Strong", "Very Strong")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def password_strength(password: str) -> int:
    """Score a password from 0 to 3: long enough, has a digit, has a special character."""
    return (
        int(len(password) >= MIN_PASSWORD_LENGTH)
        + int(any(c.isdigit() for c in password))
        + int(bool(_SPECIAL_CHARACTERS.search(password)))
    )


def describe_password_strength(password: str) -> str:
    if not password:
        return ""
    return _STRENGTH_LABELS[password_strength(password)]


# ===================== Session =====================
def start_session(request: Request, user: dict):
    request.session.clear()
    request.session["user_id"] = user["_id"]
    request.session["buyer_id"] = user.get("buyer_id")
    request.session["vendor_id"] = user.get("vendor_id")


def end_session(request: Request):
    request.session.clear()


def requires_auth(request: Request) -> str:
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return user_id


def requires_buyer(request: Request) -> str:
    buyer_id = request.session.get("buyer_id")
    if not buyer_id:
        raise HTTPException(status_code=401, detail="User does not have a buyer profile")
    return buyer_id


def requires_vendor(request: Request) -> str:
    vendor_id = request.session.get("vendor_id")
    if not vendor_id:
        raise HTTPException(status_code=401, detail="User does not have a vendor profile")
    return vendor_id
