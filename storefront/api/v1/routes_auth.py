from fastapi import APIRouter, Depends, HTTPException
from storefront.api.deps import get_store
from storefront.schemas import LoginPayload, AccessToken
from storefront.security.utils import create_access_token
from storefront.services.store import EntityStore

router = APIRouter()

@router.post('/token', response_model=AccessToken)
def issue_token(payload: LoginPayload, store: EntityStore = Depends(get_store)):
    user = store.authenticate_user(payload.email, payload.password)
    if not user: raise HTTPException(status_code=401, detail='Invalid credentials')
    token, _ = create_access_token(user.email, user.role)
    return AccessToken(access_token=token)
