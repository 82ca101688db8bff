"""Custom exception classes for the Appify API."""


class AppifyError(Exception):
    """Base exception for Appify."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(AppifyError):
    """Request validation failure."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(AppifyError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class AuthenticationError(AppifyError):
    """Authentication required or token invalid."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class PaymentRequiredError(AppifyError):
    """Download requested for a build that has not been paid for."""

    def __init__(self, build_id: str):
        super().__init__(
            "PAYMENT_REQUIRED",
            f"Build '{build_id}' has not been paid for",
            details={"build_id": build_id},
            status_code=402,
        )


class SignatureVerificationError(AppifyError):
    """Inbound webhook signature did not verify."""

    def __init__(self, message: str = "Webhook signature verification failed"):
        super().__init__("SIGNATURE_INVALID", message, status_code=400)


class PublishError(AppifyError):
    """A required file could not be written to the source repository."""

    def __init__(self, path: str):
        super().__init__(
            "PUBLISH_FAILED",
            f"Failed to publish '{path}' to the template repository",
            details={"path": path},
            status_code=502,
        )


class VendorError(AppifyError):
    """The CI service rejected or failed a request."""

    def __init__(self, message: str, details=None):
        super().__init__("VENDOR_ERROR", message, details, status_code=502)


class PaymentProcessorError(AppifyError):
    """The payment processor could not complete a request."""

    def __init__(self, message: str, details=None):
        super().__init__("PAYMENT_PROCESSOR_ERROR", message, details, status_code=500)


class WebhookProcessingError(AppifyError):
    """A vendor webhook could not be applied; the vendor is expected to retry."""

    def __init__(self, message: str, details=None):
        super().__init__("WEBHOOK_PROCESSING_ERROR", message, details, status_code=500)


class EmailDeliveryError(AppifyError):
    """The e-mail provider rejected or failed a message."""

    def __init__(self, message: str, details=None):
        super().__init__("EMAIL_DELIVERY_ERROR", message, details, status_code=502)
