"""Error taxonomy shared by the gateway and the client.

Every error the gateway can return to a caller is a subclass of
:class:`LogoforgeError`.  Each carries the HTTP status it maps to, a short
English ``error`` label and a user-facing (Arabic) ``message``.  The FastAPI
exception handler in :mod:`logoforge.api.main` turns them into JSON bodies
via :meth:`LogoforgeError.to_dict`.

========================  ======  ==========================================
Exception                 Status  Raised when
========================  ======  ==========================================
``ValidationError``       400     A required field is missing or blank
``RateLimitExceeded``     429     The caller exceeded its window budget
``UpstreamConfigError``   500     The provider credential is not configured
``UpstreamFailure``       500     The provider failed or answered garbage
``NoImageData``           500     An image response carried no image bytes
========================  ======  ==========================================
"""

from __future__ import annotations

from typing import Any


class LogoforgeError(Exception):
    """Base class for errors that map onto an HTTP error response.

    Attributes:
        status_code: HTTP status returned to the caller.
        error: Short English label (``"Missing required fields"``).
        message: User-facing message, Arabic in the shipped UI.
    """

    status_code: int = 500
    default_error: str = "Internal error"
    default_message: str = "حدث خطأ غير متوقع"

    def __init__(self, error: str | None = None, message: str | None = None) -> None:
        self.error = error or self.default_error
        self.message = message or self.default_message
        super().__init__(self.error)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the ``{error, message}`` response body."""
        return {"error": self.error, "message": self.message}


class ValidationError(LogoforgeError):
    """A required request field is missing or blank."""

    status_code = 400
    default_error = "Missing required fields"
    default_message = "يرجى إدخال اسم المشروع والوصف"


class RateLimitExceeded(LogoforgeError):
    """The caller has used up its request budget for the current window.

    ``retry_after`` is a fixed hint, not the time left in the window.
    """

    status_code = 429
    default_error = "Too many requests"
    default_message = "يرجى الانتظار قليلاً قبل المحاولة مرة أخرى"

    def __init__(
        self,
        error: str | None = None,
        message: str | None = None,
        *,
        retry_after: int = 60,
    ) -> None:
        super().__init__(error, message)
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["retryAfter"] = self.retry_after
        return body


class UpstreamConfigError(LogoforgeError):
    """The provider credential is missing from the server environment."""

    status_code = 500
    default_error = "Server configuration error"
    default_message = "خطأ في إعدادات الخادم"


class UpstreamFailure(LogoforgeError):
    """The provider answered with an error status or an unusable payload.

    Attributes:
        details: Optional technical detail included in the response body.
        upstream_status: HTTP status returned by the provider, if any.
    """

    status_code = 500
    default_error = "Generation failed"
    default_message = "فشل في توليد التحليل. حاول مرة أخرى"

    def __init__(
        self,
        error: str | None = None,
        message: str | None = None,
        *,
        details: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(error, message)
        self.details = details
        self.upstream_status = upstream_status

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.details:
            body["details"] = self.details
        return body


class NoImageData(UpstreamFailure):
    """The primary image provider responded but no image bytes were found."""

    default_error = "No image data"
    default_message = "فشل في توليد الصورة"
