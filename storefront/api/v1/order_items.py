from fastapi import APIRouter, Depends
from typing import List
from storefront.api.deps import get_store
from storefront.schemas import OrderItemCreate, OrderItemUpdate, OrderItemRead
from storefront.services.store import EntityStore

router = APIRouter()

@router.get('/', response_model=List[OrderItemRead])
def list_order_items(order_id: int, store: EntityStore = Depends(get_store)):
    return store.list_order_items(order_id)

@router.get('/{item_id}', response_model=OrderItemRead)
def get_order_item(item_id: int, store: EntityStore = Depends(get_store)):
    return store.get_order_item(item_id)

# line_total_cents is never read from the request body; the store derives it
@router.post('/', response_model=OrderItemRead, status_code=201)
def create_order_item(payload: OrderItemCreate, store: EntityStore = Depends(get_store)):
    return store.create_order_item(payload)

@router.patch('/{item_id}', response_model=OrderItemRead)
def update_order_item(item_id: int, payload: OrderItemUpdate, store: EntityStore = Depends(get_store)):
    return store.update_order_item(item_id, payload)

@router.delete('/{item_id}', response_model=OrderItemRead)
def delete_order_item(item_id: int, store: EntityStore = Depends(get_store)):
    return store.delete_order_item(item_id)
