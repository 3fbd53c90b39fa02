from passlib.context import CryptContext
from datetime import datetime, timedelta
import jwt
from typing import Tuple
from storefront.core.config import settings

pwd_ctx = CryptContext(schemes=['bcrypt'], deprecated='auto')

def hash_password(p: str) -> str: return pwd_ctx.hash(p)

def verify_password(p: str, h: str) -> bool: return pwd_ctx.verify(p, h)

def now_utc() -> datetime: return datetime.utcnow()

def create_access_token(sub: str, role: str) -> Tuple[str, datetime]:
    exp = now_utc() + timedelta(seconds=settings.ACCESS_TOKEN_EXPIRES_SECONDS)
    payload = {'sub': sub, 'role': role, 'exp': exp, 'type': 'access'}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM), exp

def decode_token(token: str):
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
