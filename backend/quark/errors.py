# Overview: Base error type shared by service modules; carries a machine-readable kind.

from __future__ import annotations


class QuarkError(Exception):
    """
    Domain error surfaced to API callers.

    Subclasses set `kind`, a stable machine-readable code. The message is
    safe to show to the caller; store errors never travel through this type.
    """
    kind = "error"

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind}


def error_body(exc: QuarkError) -> dict:
    return exc.to_dict()


STORE_FAILURE_BODY = {"error": "Internal server error", "kind": "store_failure"}

INVALID_JSON_BODY = {"error": "Invalid JSON payload", "kind": "validation_error"}
