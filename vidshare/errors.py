class ApiError(Exception):
    """Base for failures that map onto an HTTP status and a JSON body.

    The body is ``{body_key: message}``; most routes use ``message``, the
    creator invitation flow reports under ``err``.
    """

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None, *, body_key: str = "message") -> None:
        self.message = message or self.default_message
        self.body_key = body_key
        super().__init__(self.message)

    def to_body(self) -> dict[str, str]:
        return {self.body_key: self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class TokenExpired(Unauthorized):
    default_message = "Token expired"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Access denied"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Already exists"


class InternalError(ApiError):
    pass
