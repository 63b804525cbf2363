"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API and the client core."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"

    # Registration errors (400/409)
    REGISTRATION_FAILED = "REGISTRATION_FAILED"

    # Profile errors
    PROFILE_FETCH_FAILED = "PROFILE_FETCH_FAILED"
    PROFILE_CONFLICT = "PROFILE_CONFLICT"
    PROFILE_CREATE_FAILED = "PROFILE_CREATE_FAILED"
    PROFILE_NOT_READY = "PROFILE_NOT_READY"

    # Not found errors (404)
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMPTY_ORDER = "EMPTY_ORDER"
    MIXED_SELLER_ORDER = "MIXED_SELLER_ORDER"
    INVALID_ORDER_STATUS = "INVALID_ORDER_STATUS"
    INVALID_PRODUCT_STATUS = "INVALID_PRODUCT_STATUS"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server / upstream errors (500/502)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    ORDER_CREATE_FAILED = "ORDER_CREATE_FAILED"
    PARTIAL_ORDER_FAILURE = "PARTIAL_ORDER_FAILURE"
    NETWORK_ERROR = "NETWORK_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


# --- Auth ---


class AuthError(AppException):
    """Base class for sign-in / sign-up failures."""


class InvalidCredentialsError(AuthError):
    """The auth provider rejected the email/password pair."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_CREDENTIALS,
            message=message,
            status_code=401,
        )


class RegistrationFailedError(AuthError):
    """Sign-up did not complete.

    ``principal_id`` is set when the principal was registered but its
    profile could not be written.
    """

    def __init__(self, message: str, principal_id: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.REGISTRATION_FAILED,
            message=message,
            status_code=400,
            details={"principal_id": principal_id} if principal_id else None,
        )
        self.principal_id = principal_id


class AuthenticationError(AuthError):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AuthError):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class InsufficientRoleError(AuthError):
    """The caller's profile role does not admit the operation."""

    def __init__(self, required_roles: list[str]) -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_ROLE,
            message=f"Insufficient role. Required: {', '.join(required_roles)}",
            status_code=403,
            details={"required_roles": required_roles},
        )


# --- Profile ---


class ProfileError(AppException):
    """Base class for profile sync failures."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        principal_id: str,
        retryable: bool = False,
        status_code: int = 502,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status_code,
            details={"principal_id": principal_id, "retryable": retryable},
        )
        self.principal_id = principal_id
        self.retryable = retryable


class ProfileFetchError(ProfileError):
    """Reading the profile failed for a reason other than absence."""

    def __init__(self, principal_id: str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_FETCH_FAILED,
            message=f"Could not load profile: {reason}",
            principal_id=principal_id,
            retryable=True,
        )


class ProfileConflictError(ProfileError):
    """Profile creation conflicted and the record is still missing."""

    def __init__(self, principal_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_CONFLICT,
            message="Profile could not be created; please retry",
            principal_id=principal_id,
            retryable=True,
            status_code=409,
        )


class ProfileCreateError(ProfileError):
    """The missing profile could not be written."""

    def __init__(self, principal_id: str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_CREATE_FAILED,
            message=f"Could not create profile: {reason}",
            principal_id=principal_id,
            retryable=True,
        )


class ProfileNotReadyError(ProfileError):
    """An operation needed a profile that has not been loaded."""

    def __init__(self, principal_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_NOT_READY,
            message="Profile is not available yet",
            principal_id=principal_id,
            retryable=True,
            status_code=409,
        )


# --- Products ---


class ProductNotFoundError(AppException):
    """Product not found."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.PRODUCT_NOT_FOUND,
            message=f"Product not found: {product_id}",
            status_code=404,
            details={"product_id": product_id},
        )


class InvalidProductStatusError(AppException):
    """Product is not in a state that admits the transition."""

    def __init__(self, product_id: str, current: str, target: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_PRODUCT_STATUS,
            message=f"Cannot move product from {current} to {target}",
            status_code=400,
            details={"product_id": product_id, "current": current, "target": target},
        )


# --- Orders ---


class OrderError(AppException):
    """Base class for order submission failures."""


class EmptyOrderError(OrderError):
    """An order was submitted without line items."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.EMPTY_ORDER,
            message="An order needs at least one item",
            status_code=400,
        )


class MixedSellerOrderError(OrderError):
    """The items of one order belong to more than one seller."""

    def __init__(self, seller_ids: list[str]) -> None:
        super().__init__(
            error_code=ErrorCode.MIXED_SELLER_ORDER,
            message="An order can only contain products from one seller",
            status_code=400,
            details={"seller_ids": seller_ids},
        )


class OrderCreateError(OrderError):
    """The order header could not be stored."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.ORDER_CREATE_FAILED,
            message=f"Could not create the order: {reason}",
            status_code=500,
        )


class PartialOrderFailureError(OrderError):
    """The order header was stored but its line items were not."""

    def __init__(self, order_id: str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.PARTIAL_ORDER_FAILURE,
            message=f"Order {order_id} was created without its items: {reason}",
            status_code=500,
            details={"order_id": order_id},
        )
        self.order_id = order_id


class OrderNotFoundError(OrderError):
    """Order not found."""

    def __init__(self, order_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ORDER_NOT_FOUND,
            message=f"Order not found: {order_id}",
            status_code=404,
            details={"order_id": order_id},
        )


class InvalidOrderStatusError(OrderError):
    """Order status transition is not allowed."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ORDER_STATUS,
            message=f"Cannot move order from {current} to {target}",
            status_code=400,
            details={"current": current, "target": target},
        )


# --- Transport ---


class NetworkError(AppException):
    """The backend could not be reached. Never retried automatically."""

    def __init__(self, message: str = "Could not reach the server") -> None:
        super().__init__(
            error_code=ErrorCode.NETWORK_ERROR,
            message=message,
            status_code=502,
        )
