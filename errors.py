"""
Error taxonomy for the invoicing core.

None of these are fatal: the gateway recovers from BackendError, the API turns the rest into notices.
"""


class InvoicingError(Exception):
    level = "error"
    status_code = 500


class ValidationError(InvoicingError):
    """Missing required field or no complete line item. Nothing is persisted."""
    status_code = 400


class BackendError(InvoicingError):
    """A store could not be reached or rejected the call."""
    status_code = 503


class NotFoundError(InvoicingError):
    status_code = 404


class RenderError(InvoicingError):
    """The document renderer failed; the invoice itself is untouched."""
    status_code = 500
