from typing import Dict, List

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationFailed(Exception):
    """Field-level validation failure, rendered as 422 with an `errors` map keyed by dotted field path."""

    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid.") -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors
