class StartupFailure(RuntimeError):
    """The store could not be reached while the app was being built."""


class StoreError(Exception):
    """Any failure raised by the relational store during a repository call."""

    status_code = 500
    message = "Error accessing the product database"

    def __init__(self, operation, detail=None):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}" if detail else f"{operation} failed")


class StoreTimeout(StoreError):
    status_code = 503
    message = "Product database timed out"


class ProductNotFound(LookupError):
    status_code = 404
    message = "Product not found"

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"product id={product_id} not found")
