"""FastAPI routes for the Ordering domain: customer orders and admin management.

Handlers are plain ``def`` functions; FastAPI runs them in its threadpool so
blocking repository calls never stall the event loop.
"""

from fastapi import APIRouter, BackgroundTasks, Depends

from ordering.api.schemas import (
    AdminOrderListResponse,
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    OrderSchema,
    StatusResponse,
    UpdateStatusRequest,
)
from shared.customer import Customer
from shared.http import admin_customer, current_customer, get_container

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def create_order(
    body: CreateOrderRequest,
    background_tasks: BackgroundTasks,
    customer: Customer = Depends(current_customer),
    container=Depends(get_container),
) -> OrderResponse:
    """Place an order without online payment (stock is reserved immediately)."""
    order = container.placement.place_order(
        customer.id,
        body.cart_items(),
        body.options(),
        shipping_info=body.shipping_info.to_shipping_info(),
        billing_type=body.billing_type,
        billing_info=body.billing(),
    )
    background_tasks.add_task(container.dispatcher.dispatch, order, customer)
    return OrderResponse.of(order)


@order_router.get("/me", response_model=OrderListResponse)
def my_orders(
    customer: Customer = Depends(current_customer),
    container=Depends(get_container),
) -> OrderListResponse:
    orders = container.queries.list_for_customer(customer.id)
    return OrderListResponse(count=len(orders), orders=[OrderSchema.from_order(order) for order in orders])


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    customer: Customer = Depends(current_customer),
    container=Depends(get_container),
) -> OrderResponse:
    return OrderResponse.of(container.queries.get(order_id, customer))


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    customer: Customer = Depends(current_customer),
    container=Depends(get_container),
) -> OrderResponse:
    """Cancel an order. Customers may cancel their own orders; admins any."""
    # Ownership is enforced by the read
    order = container.queries.get(order_id, customer)
    return OrderResponse.of(container.lifecycle.cancel(order.id))


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_router.get("", response_model=AdminOrderListResponse)
def list_orders(
    _admin: Customer = Depends(admin_customer),
    container=Depends(get_container),
) -> AdminOrderListResponse:
    listing = container.queries.list_all()
    return AdminOrderListResponse(
        count=len(listing.orders),
        orders=[OrderSchema.from_order(order) for order in listing.orders],
        total_amount=listing.total_amount,
    )


@admin_router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    _admin: Customer = Depends(admin_customer),
    container=Depends(get_container),
) -> OrderResponse:
    return OrderResponse.of(container.lifecycle.update_status(order_id, body.status))


@admin_router.delete("/{order_id}", response_model=StatusResponse)
def delete_order(
    order_id: str,
    _admin: Customer = Depends(admin_customer),
    container=Depends(get_container),
) -> StatusResponse:
    container.lifecycle.delete(order_id)
    return StatusResponse(message="Order deleted")
