"""Checkout error taxonomy.

Every error is a Protean exception carrying a ``messages`` dict keyed by the
offending field (the ``errors`` member of an API error body) plus the HTTP
status the API layer maps it to. Validation and not-found errors also derive
from Protean's own ``ValidationError`` and ``ObjectNotFoundError``, so code
handling the framework's errors handles ours too.
"""

from protean.exceptions import ObjectNotFoundError, ProteanExceptionWithMessage
from protean.exceptions import ValidationError as ProteanValidationError


class CheckoutError(ProteanExceptionWithMessage):
    status_code = 500
    default_field = "_entity"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__({field or self.default_field: [message]})
        self.message = message

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# 400: malformed or rejected input
# ---------------------------------------------------------------------------
class ValidationError(CheckoutError, ProteanValidationError):
    status_code = 400


class InvalidQuantity(ValidationError):
    default_field = "quantity"


class InvalidSize(ValidationError):
    default_field = "size"


class InvalidColor(ValidationError):
    default_field = "color"


class InvalidTransition(ValidationError):
    default_field = "status"


class PaymentNotSuccessful(ValidationError):
    default_field = "payment"


class SignatureMismatch(CheckoutError):
    status_code = 400
    default_field = "signature"


class ConflictError(CheckoutError):
    status_code = 400


class InsufficientStock(ConflictError):
    default_field = "quantity"


# ---------------------------------------------------------------------------
# 403 / 404
# ---------------------------------------------------------------------------
class AuthorizationError(CheckoutError):
    status_code = 403


class NotFoundError(CheckoutError, ObjectNotFoundError):
    status_code = 404


class ProductUnavailable(NotFoundError):
    default_field = "product"


class InvalidProduct(NotFoundError):
    default_field = "product"


# ---------------------------------------------------------------------------
# 5xx
# ---------------------------------------------------------------------------
class GatewayError(CheckoutError):
    status_code = 503
    default_field = "gateway"


class InternalError(CheckoutError):
    status_code = 500
