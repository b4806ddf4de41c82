"""FastAPI dependencies shared by every router."""

from fastapi import Depends, Header, Request

from shared.customer import Customer
from shared.errors import AuthorizationError


def get_container(request: Request):
    """Return the service container mounted on the application."""
    return request.app.state.container


def current_customer(
    x_customer_id: str = Header(default=""),
    x_customer_name: str = Header(default=""),
    x_customer_email: str = Header(default=""),
    x_customer_role: str = Header(default="user"),
) -> Customer:
    """Caller identity, as forwarded by the auth proxy in front of this service."""
    customer_id = x_customer_id.strip()
    if not customer_id:
        raise AuthorizationError("Authentication required")
    return Customer(
        id=customer_id,
        name=x_customer_name.strip(),
        email=x_customer_email.strip(),
        role=(x_customer_role.strip() or "user").lower(),
    )


def admin_customer(customer: Customer = Depends(current_customer)) -> Customer:
    if not customer.is_admin:
        raise AuthorizationError("Admin access required")
    return customer
