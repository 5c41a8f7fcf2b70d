"""
schemas/errors.py — Body returned for every handled error

Built by the handlers in main.py. Domain errors may add fields on top
(QuotaExceeded adds limit, accepted_today and review_url; PersistenceFailure
adds retryable).
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    status_code: int
    request_id: str = ""
    detail: list | None = None
