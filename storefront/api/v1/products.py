from fastapi import APIRouter, Depends
from typing import List, Optional
from storefront.api.deps import get_store
from storefront.schemas import ProductCreate, ProductUpdate, ProductRead
from storefront.services.store import EntityStore

router = APIRouter()

@router.get('/', response_model=List[ProductRead])
def list_products(q: Optional[str] = None, active: Optional[bool] = None, limit: int = 50, offset: int = 0, store: EntityStore = Depends(get_store)):
    return store.list_products(q=q, active=active, limit=limit, offset=offset)

@router.get('/{product_id}', response_model=ProductRead)
def get_product(product_id: int, store: EntityStore = Depends(get_store)):
    return store.get_product(product_id)

@router.post('/', response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, store: EntityStore = Depends(get_store)):
    return store.create_product(payload)

@router.patch('/{product_id}', response_model=ProductRead)
def update_product(product_id: int, payload: ProductUpdate, store: EntityStore = Depends(get_store)):
    return store.update_product(product_id, payload)

@router.delete('/{product_id}', status_code=204)
def delete_product(product_id: int, store: EntityStore = Depends(get_store)):
    store.delete_product(product_id)
