import base64
import json
import logging
import time
from typing import Optional

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID, SESSION_COOKIE_NAME
from .database import get_db
from .models import User
from .shared.errors import AuthorizationError

logger = logging.getLogger(__name__)

# Firebase session cookies are signed with these keys (not the ID-token keys)
SESSION_COOKIE_KEYS_URL = "https://www.googleapis.com/identitytoolkit/v3/relyingparty/publicKeys"

# Cache for Google's public keys
_cached_keys: Optional[dict] = None


async def get_session_cookie_public_keys(force_refresh: bool = False) -> Optional[dict]:
    """Fetch the public certificates used to sign Firebase session cookies"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.get(SESSION_COOKIE_KEYS_URL)
        if response.status_code == 200:
            _cached_keys = response.json()
            logger.info(f"✅ Fetched {len(_cached_keys)} session cookie public keys")
            return _cached_keys
        logger.error(f"❌ Failed to fetch session cookie keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching session cookie keys: {str(e)}")
    return None


def _b64url_decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


async def verify_session_cookie(cookie: str) -> dict:
    """
    Verify a Firebase session cookie with full signature verification.
    Returns the decoded claims.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Authentication not configured")

    parts = cookie.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid session format")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64url_decode(header_b64))
        claims = json.loads(_b64url_decode(payload_b64))
        signature = _b64url_decode(signature_b64)
    except (ValueError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=401, detail="Invalid session encoding") from e

    if header.get("alg") != "RS256" or not header.get("kid"):
        logger.error(f"❌ Invalid session header: alg={header.get('alg')}")
        raise HTTPException(status_code=401, detail="Invalid session header")

    kid = header["kid"]
    public_keys = await get_session_cookie_public_keys()
    if not public_keys or kid not in public_keys:
        # Keys rotate; refresh once before giving up
        public_keys = await get_session_cookie_public_keys(force_refresh=True)
        if not public_keys or kid not in public_keys:
            logger.error(f"❌ Key ID {kid} not found in public keys after refresh")
            raise HTTPException(status_code=401, detail="Unable to verify session signature")

    public_key = load_pem_x509_certificate(public_keys[kid].encode()).public_key()
    try:
        public_key.verify(
            signature,
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Session signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid session signature") from e

    if claims.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid session audience")
    if claims.get("iss") != f"https://session.firebase.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid session issuer")

    now = time.time()
    if claims.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Session has expired. Please sign in again.",
            headers={"X-Session-Expired": "true"},
        )
    if claims.get("iat", 0) > now + 60:  # Allow 60 seconds clock skew
        raise HTTPException(status_code=401, detail="Invalid session")

    return claims


def find_or_create_user(db: Session, claims: dict) -> User:
    """Look up the user behind verified claims, creating the row on first sign-in"""
    firebase_uid = claims.get("sub") or claims.get("user_id")
    email = claims.get("email")
    if not firebase_uid:
        raise HTTPException(status_code=401, detail="Invalid session claims")

    user = db.query(User).filter(User.firebase_uid == firebase_uid).first()
    if user:
        return user

    if email:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.info(f"🔄 Migrating user {email} to Firebase UID {firebase_uid}")
            existing_user.firebase_uid = firebase_uid
            db.commit()
            db.refresh(existing_user)
            return existing_user

    logger.info(f"🆕 Creating new user: {email}")
    user = User(firebase_uid=firebase_uid, email=email or "", full_name=claims.get("name"))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(
            status_code=409, detail="This email is already registered with another account."
        ) from e
    db.refresh(user)
    return user


async def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Get current user from the identity provider's session cookie"""
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not cookie:
        raise HTTPException(status_code=401, detail="Not authenticated. Please sign in.")

    claims = await verify_session_cookie(cookie)
    user = find_or_create_user(db, claims)
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """
    Get current user and verify the admin role.
    Use this dependency for every admin route; it runs before any business logic.
    """
    if not user.is_admin:
        logger.warning(f"⚠️ User {user.email} attempted to access an admin route")
        raise AuthorizationError("Admin access required")
    return user
