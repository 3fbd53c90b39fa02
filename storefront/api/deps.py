from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from storefront.core.access import ANONYMOUS, AccessPolicy, Actor, policy_from_settings
from storefront.core.config import settings
from storefront.db.session import SessionLocal
from storefront.security.utils import decode_token
from storefront.services.store import EntityStore

security = HTTPBearer(auto_error=False)

def get_db():
    db = SessionLocal()
    try: yield db
    finally: db.close()

def get_policy() -> AccessPolicy:
    return policy_from_settings(settings)

def get_actor(creds: HTTPAuthorizationCredentials = Depends(security)) -> Actor:
    if not creds: return ANONYMOUS
    try:
        payload = decode_token(creds.credentials)
    except Exception:
        raise HTTPException(status_code=401, detail='Invalid token')
    if payload.get('type') != 'access':
        raise HTTPException(status_code=401, detail='Invalid access token')
    return Actor(sub=payload.get('sub'), role=payload.get('role', 'customer'))

def get_store(db: Session = Depends(get_db), policy: AccessPolicy = Depends(get_policy), actor: Actor = Depends(get_actor)) -> EntityStore:
    return EntityStore(db, policy=policy, actor=actor, recalc_in_transaction=settings.RECALC_IN_TRANSACTION)
