"""Error taxonomy shared by services and routers.

Each error carries the HTTP status it maps to; ``auth_api.app`` renders them
as ``{"error": message}``.
"""

from __future__ import annotations


class ApiError(Exception):
    status_code = 400

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class AuthFailure(ApiError):
    status_code = 400


class UpstreamFailure(ApiError):
    status_code = 400
