from __future__ import annotations

from typing import Any, Dict, Optional


class BidflowError(Exception):
    """
    Base error. `code` is a stable identifier callers can switch on
    (same idea as ValueError("TOKEN_EXPIRED") but typed).
    """

    code = "BIDFLOW_ERROR"
    retryable = False

    def __init__(self, message: Optional[str] = None, **meta: Any):
        super().__init__(message or self.code)
        self.meta: Dict[str, Any] = meta

    def as_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": str(self),
            "retryable": self.retryable,
            "meta": self.meta,
        }


class QuoteValidationError(BidflowError, ValueError):
    code = "VALIDATION_ERROR"


class NotFoundError(BidflowError, LookupError):
    code = "NOT_FOUND"


class QuoteNotFound(NotFoundError):
    code = "QUOTE_NOT_FOUND"


class ClientNotFound(NotFoundError):
    code = "CLIENT_NOT_FOUND"


class TemplateNotFound(NotFoundError):
    code = "TEMPLATE_NOT_FOUND"


class ShareLinkNotFound(NotFoundError):
    code = "SHARE_LINK_NOT_FOUND"


class ShareLinkExpired(BidflowError):
    code = "SHARE_LINK_EXPIRED"


class ShareLinkUnavailable(BidflowError):
    code = "SHARE_LINK_UNAVAILABLE"


class InvalidStatusTransition(BidflowError, ValueError):
    code = "INVALID_STATUS_TRANSITION"


class VersionConflictError(BidflowError):
    code = "VERSION_CONFLICT"
    retryable = True


class SnapshotSchemaError(BidflowError, ValueError):
    code = "SNAPSHOT_SCHEMA_INVALID"


class AppendOnlyViolation(BidflowError):
    code = "APPEND_ONLY"
