"""Response envelopes and the error classification used by every route."""

import math
from typing import Any, Dict, Optional, Tuple

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from pgrest.core import errors
from pgrest.core.config import Pagination
from pgrest.core.logging import log

# Domain errors answered with their own name and message
_DOMAIN_STATUS = {
    errors.ValidationError: 400,
    errors.NotFoundError: 404,
    errors.NotImplementedOperationError: 501,
    errors.ConfigError: 500,
}


def classify_error(error: BaseException) -> Tuple[int, Dict[str, Any]]:
    """Map any exception to ``(status_code, error_body)``; logs server-side failures."""
    for error_type, status in _DOMAIN_STATUS.items():
        if isinstance(error, error_type):
            if status >= 500:
                log.error(f"{error}", exc_info=error)
            else:
                log.debug(f"{status} {error}")
            return status, {"name": error.name, "message": error.message}

    if isinstance(error, errors.DBError):
        status = 400 if error.is_conflict else 500
        if status >= 500:
            log.error(f"DBError code={error.code}", exc_info=error)
        else:
            log.debug(f"DBError code={error.code}")
        return status, {"name": "DBError", "code": error.code}

    # Anything unexpected is reported as an unclassified persistence failure
    log.error(f"Unhandled error: {error!r}", exc_info=error)
    return 500, {"name": "DBError", "code": None}


def error_response(error: BaseException) -> JSONResponse:
    status, body = classify_error(error)
    return JSONResponse(status_code=status, content={"error": body, "data": None})


def success_response(data: Any, status_code: int = 200, **extra: Any) -> JSONResponse:
    content = {"error": None, "data": data, **extra}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def pagination_response(pagination: Optional[Pagination], total_rows: int) -> Dict[str, Any]:
    """Pagination block for list responses; unbounded reads are a single page."""
    if pagination is None:
        return {
            "page": 1,
            "perPage": None,
            "totalRows": total_rows,
            "pageCount": 1 if total_rows else 0,
        }
    return {
        "page": pagination.page,
        "perPage": pagination.per_page,
        "totalRows": total_rows,
        "pageCount": math.ceil(total_rows / pagination.per_page),
    }
