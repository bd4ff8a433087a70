from __future__ import annotations

import json

from flask import Response


class ApiError(Exception):
    """
    Raised from request handlers and services; rendered as
    {"errors": {key: [message, ...]}} with the given status code.
    """

    def __init__(self, status_code: int = 422, errors: dict[str, list[str]] | None = None):
        super().__init__(status_code, errors)
        self.status_code = status_code
        self.errors: dict[str, list[str]] = errors or {}

    @classmethod
    def single(cls, status_code: int, key: str, message: str) -> "ApiError":
        return cls(status_code, {key: [message]})

    def add(self, key: str, message: str) -> None:
        self.errors.setdefault(key, []).append(message)


def error_response(status_code: int, errors: dict[str, list[str]]) -> Response:
    body = json.dumps({"errors": errors})
    return Response(body, status=status_code, mimetype="application/json")
