# services/errors.py


class OrderError(Exception):
    """Base for every error the order services raise on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderError):
    """Bad user input; the operation is aborted before anything is mutated."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class DuplicateOrderError(ValidationError):
    def __init__(self, order_no: str):
        super().__init__(
            f"Order number {order_no} already exists. Please use a different Order Number",
            field="order_no",
        )
        self.order_no = order_no


class NotFoundError(OrderError):
    pass


class BoundaryError(OrderError):
    """Storage or export failure, message is shown to the user as-is."""
    pass
