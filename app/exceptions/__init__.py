"""Custom exceptions for the storefront API."""

class ShopError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(ShopError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class ValidationError(BusinessLogicError):
    """Raised when a request body fails boundary validation."""
    def __init__(self, message="Datos inválidos", errors=None):
        payload = {'errors': errors} if errors else None
        super().__init__(message, status_code=400, payload=payload)

class NotFoundError(ShopError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_name, required, available):
        message = f"Stock insuficiente para {product_name}: se requieren {int(required)}, disponible {int(available)}"
        super().__init__(message, status_code=409, payload={'disponible': int(available)})

class UnauthorizedError(ShopError):
    """Raised when the request is not authenticated."""
    def __init__(self, message="No autenticado"):
        super().__init__(message, 401)

class ForbiddenError(ShopError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="No autorizado"):
        super().__init__(message, 403)

class RateLimitError(ShopError):
    """Raised when a caller exceeds a rate limit window."""
    def __init__(self, retry_after, message="Demasiados intentos. Intenta nuevamente más tarde."):
        super().__init__(message, 429, {'retryAfter': int(retry_after)})
        self.retry_after = int(retry_after)

class PricingError(ShopError):
    """Raised when a cart line cannot be priced (inconsistent catalog data)."""
    def __init__(self, message="No se pudo calcular el carrito"):
        super().__init__(message, 500)
