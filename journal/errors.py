# journal/errors.py

from fastapi import HTTPException


class AuthError(HTTPException):
    """Missing or invalid bearer credential."""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=401, detail=detail)


class NoDataError(HTTPException):
    """The caller has no trades to analyse."""

    def __init__(self, detail: str = "No trades found. Add some trades to generate insights."):
        super().__init__(status_code=400, detail=detail)


class RemoteGenerationError(Exception):
    """The text-generation service could not produce usable insights."""


class PersistenceError(Exception):
    """Generated insights could not be written to the database."""
