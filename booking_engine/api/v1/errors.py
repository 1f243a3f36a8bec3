from fastapi import HTTPException

from booking_engine.application.exceptions import AdmissionError, ErrorKind

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.PAST_OR_OUT_OF_RANGE: 422,
    ErrorKind.STORAGE_ERROR: 503,
}


def http_error(error: AdmissionError) -> HTTPException:
    detail = {
        "kind": error.kind.value,
        "messages": list(error.messages),
        "conflicts": [
            {"kind": c.kind.value, "message": c.message, "conflicting_id": c.conflicting_id}
            for c in error.conflicts
        ],
    }
    return HTTPException(status_code=STATUS_BY_KIND.get(error.kind, 500), detail=detail)
