"""Typed helper errors and ProblemDetails bodies.

Every error the helper reports over HTTP is a ProblemDetails object
(RFC 9457): ``{type, title, status, detail}``.
"""


class HelperError(Exception):
    """An error that carries the HTTP status the boundary should report."""

    def __init__(self, status, message):
        super().__init__(message)
        self.status = status
        self.message = message


class DecodeError(HelperError):
    """Raised when a request body does not have the expected shape."""

    def __init__(self, title, detail):
        super().__init__(400, detail)
        self.title = title


def problem(status, title, detail, type="about:blank"):
    return {"type": type, "title": title, "status": status, "detail": detail}
