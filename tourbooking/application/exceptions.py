class CartGatewayError(RuntimeError):
    """Raised when the commerce backend fails (network errors, HTTP errors, GraphQL errors)."""
    pass


class CartNotFoundError(CartGatewayError):
    """Raised when the backend no longer knows the cart id."""
    pass


class StaleCartError(RuntimeError):
    """Raised when a cart id is required but none is available in memory or storage."""
    pass
