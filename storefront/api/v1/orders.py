from fastapi import APIRouter, Depends
from typing import List, Optional
from storefront.api.deps import get_store
from storefront.db.models import OrderStatus
from storefront.schemas import OrderCreate, OrderRead, OrderStatusUpdate
from storefront.services.store import EntityStore

router = APIRouter()

@router.get('/', response_model=List[OrderRead])
def list_orders(user_id: Optional[int] = None, status: Optional[OrderStatus] = None, limit: int = 50, offset: int = 0, store: EntityStore = Depends(get_store)):
    return store.list_orders(user_id=user_id, status=status, limit=limit, offset=offset)

@router.get('/{order_id}', response_model=OrderRead)
def get_order(order_id: int, store: EntityStore = Depends(get_store)):
    return store.get_order(order_id)

@router.post('/', response_model=OrderRead, status_code=201)
def create_order(payload: OrderCreate, store: EntityStore = Depends(get_store)):
    return store.create_order(payload)

@router.patch('/{order_id}/status', response_model=OrderRead)
def set_order_status(order_id: int, payload: OrderStatusUpdate, store: EntityStore = Depends(get_store)):
    return store.set_order_status(order_id, payload.status)

@router.delete('/{order_id}', status_code=204)
def delete_order(order_id: int, store: EntityStore = Depends(get_store)):
    store.delete_order(order_id)
