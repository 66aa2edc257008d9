from enum import Enum
from typing import Dict


class ConnectionFailure(Enum):
    REFUSED = "REFUSED"
    AUTH_OR_DATABASE = "AUTH_OR_DATABASE"
    TIMEOUT = "TIMEOUT"
    QUERY = "QUERY"
    OTHER = "OTHER"


# PostgreSQL SQLSTATEs: invalid password, invalid authorization, unknown database
AUTH_OR_DATABASE_CODES = {"28P01", "28000", "3D000"}


def explain_failure(code: ConnectionFailure, context: Dict) -> str:
    templates = {
        ConnectionFailure.REFUSED: "Could not connect to the server. Check host and port.",
        ConnectionFailure.AUTH_OR_DATABASE: "Authentication or database selection failed. Check the credentials and the database name.",
        ConnectionFailure.TIMEOUT: "Connection timed out after {timeout}s. Check that the server is reachable.",
        ConnectionFailure.QUERY: "Failed to execute query: {detail}",
        ConnectionFailure.OTHER: "Connection error: {detail}",
    }
    template = templates.get(code, templates[ConnectionFailure.OTHER])
    return template.format(**{'timeout': '?', 'detail': '', **context})


def classify_connection_error(exc: Exception) -> ConnectionFailure:
    """Map a driver/SQLAlchemy connect error onto a failure category."""
    orig = getattr(exc, "orig", None) or exc
    pgcode = getattr(orig, "pgcode", None)
    message = str(orig).lower()

    if pgcode in AUTH_OR_DATABASE_CODES:
        return ConnectionFailure.AUTH_OR_DATABASE
    if "password authentication failed" in message or ("database" in message and "does not exist" in message):
        return ConnectionFailure.AUTH_OR_DATABASE
    if "connection refused" in message:
        return ConnectionFailure.REFUSED
    if "timeout expired" in message or "timed out" in message:
        return ConnectionFailure.TIMEOUT
    return ConnectionFailure.OTHER
