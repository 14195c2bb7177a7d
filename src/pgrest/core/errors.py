"""Error taxonomy shared by the request pipeline and the response mapper."""

from typing import Any, Dict, List, Optional


class PgRestError(Exception):
    """Base class for every error raised by pgrest."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    @property
    def name(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.name}: {self.message}" if self.message else self.name


class ConfigError(PgRestError):
    """The API was bound with an incorrect entity configuration."""


class ValidationError(PgRestError):
    """Request params or payload failed validation."""

    def __init__(self, message: str = "", details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.details = details or []


class NotFoundError(PgRestError):
    """The requested record was not found."""


class NotImplementedOperationError(PgRestError):
    """The operation is intentionally unsupported."""

    @property
    def name(self) -> str:
        return "NotImplementedError"


# SQLSTATE codes for unique and not-null violations
CONFLICT_CODES = frozenset({"23505", "23502"})

# SQLite extended result names mapped to their SQLSTATE equivalents
_SQLITE_CODES = {
    "SQLITE_CONSTRAINT_UNIQUE": "23505",
    "SQLITE_CONSTRAINT_PRIMARYKEY": "23505",
    "SQLITE_CONSTRAINT_NOTNULL": "23502",
    "SQLITE_CONSTRAINT_FOREIGNKEY": "23503",
    "SQLITE_CONSTRAINT_CHECK": "23514",
}


class DBError(PgRestError):
    """A failure raised by the persistence layer, identified by its code."""

    def __init__(self, code: Optional[str] = None, message: str = ""):
        super().__init__(message)
        self.code = code

    @property
    def is_conflict(self) -> bool:
        return self.code in CONFLICT_CODES

    @classmethod
    def from_driver_error(cls, error: BaseException) -> "DBError":
        """Wrap a DBAPI (or SQLAlchemy-wrapped DBAPI) error, keeping only its code."""
        orig = getattr(error, "orig", None) or error
        return cls(code=extract_error_code(orig), message=type(orig).__name__)


def extract_error_code(error: BaseException) -> Optional[str]:
    """Read the SQLSTATE from psycopg2 (``pgcode``), psycopg 3 (``sqlstate``) or sqlite3."""
    for attr in ("pgcode", "sqlstate"):
        code = getattr(error, attr, None)
        if code:
            return str(code)
    sqlite_name = getattr(error, "sqlite_errorname", None)
    if sqlite_name:
        return _SQLITE_CODES.get(sqlite_name, sqlite_name)
    code = getattr(error, "code", None)
    return str(code) if code is not None else None
