from fastapi import APIRouter, Depends
from typing import List
from storefront.api.deps import get_store
from storefront.schemas import UserCreate, UserRead
from storefront.services.store import EntityStore

router = APIRouter()

@router.get('/', response_model=List[UserRead])
def list_users(limit: int = 50, offset: int = 0, store: EntityStore = Depends(get_store)):
    return store.list_users(limit=limit, offset=offset)

@router.get('/{user_id}', response_model=UserRead)
def get_user(user_id: int, store: EntityStore = Depends(get_store)):
    return store.get_user(user_id)

@router.post('/', response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, store: EntityStore = Depends(get_store)):
    return store.create_user(payload)
