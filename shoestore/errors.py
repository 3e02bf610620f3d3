"""Exceptions raised by the store services"""

from typing import Optional


class StoreError(Exception):
    """Base exception for all shoe store errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# --- Request validation (400) ---


class InvalidArgumentError(StoreError):
    """Raised when a request is missing data or carries malformed data."""

    pass


class MissingContactError(InvalidArgumentError):
    """Raised when checkout has no phone number to use."""

    def __init__(self):
        super().__init__(
            "Phone number is required. Please update your profile or "
            "provide phone number in the request."
        )


class MissingAddressError(InvalidArgumentError):
    """Raised when checkout has no shipping address to use."""

    def __init__(self):
        super().__init__(
            "Shipping address is required. Please update your profile or "
            "provide shipping address in the request."
        )


class InvalidAddressError(InvalidArgumentError):
    """Raised when a shipping address lacks a required field."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is required in shipping address")


class EmptyCartError(InvalidArgumentError):
    """Raised when checking out a cart with no lines."""

    def __init__(self):
        super().__init__("Cart is empty. Add items before creating order.")


class InvalidLineItemError(InvalidArgumentError):
    """Raised when a cart line points at a product that no longer exists."""

    def __init__(self, product_id: Optional[str] = None):
        self.product_id = product_id
        super().__init__("Product not found for one of the cart items")


# --- Business preconditions (400) ---


class BusinessRuleError(StoreError):
    """Raised when a request is well formed but a store rule rejects it."""

    pass


class InsufficientStockError(BusinessRuleError):
    """Raised when a product cannot cover the requested quantity."""

    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Available: {available}, Requested: {requested}"
        )


class SizeUnavailableError(BusinessRuleError):
    """Raised when a product is not offered in the requested size."""

    def __init__(self, product_name: str, size: float):
        self.product_name = product_name
        self.size = size
        super().__init__(f"Size {size:g} not available for {product_name}")


class InvalidTransitionError(BusinessRuleError):
    """Raised when an order cannot move from its current status."""

    def __init__(self, current: str, target: Optional[str] = None, message: Optional[str] = None):
        self.current = current
        self.target = target
        if message is None:
            if target == "cancelled":
                message = f"Order cannot be cancelled at this stage ({current})"
            elif target:
                message = f"Order cannot move from {current} to {target}"
            else:
                message = f"Operation not allowed for order in {current} status"
        super().__init__(message)


# --- Lookup (404) / uniqueness (409) ---


class NotFoundError(StoreError):
    """Raised when a product, cart, order, user or line does not exist."""

    def __init__(self, resource: str, message: Optional[str] = None):
        self.resource = resource
        super().__init__(message or f"{resource} not found")


class ConflictError(StoreError):
    """Raised when a record would violate a uniqueness rule."""

    pass


# --- Credentials (401/403) ---


class AuthenticationError(StoreError):
    """Raised when a credential is missing, invalid or expired."""

    pass


class PermissionDeniedError(StoreError):
    """Raised when a valid credential lacks the required role."""

    pass


# --- Downstream failures (500) ---


class DependencyError(StoreError):
    """Raised when a collaborator the operation depends on fails."""

    pass


class MailDeliveryError(DependencyError):
    """Raised when the mail transport rejects or cannot send a message."""

    pass


ERROR_STATUS_CODES: dict[type, int] = {
    InvalidArgumentError: 400,
    BusinessRuleError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    AuthenticationError: 401,
    PermissionDeniedError: 403,
    DependencyError: 500,
}


def status_code_for(exc: StoreError) -> int:
    """Resolve the HTTP status for an error, walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500
