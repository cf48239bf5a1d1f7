class ValidationError(Exception):
    """Required input is missing from a request."""


class StoreError(Exception):
    """A read or write against the document store failed."""
