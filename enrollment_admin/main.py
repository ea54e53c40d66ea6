import logging
from typing import Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from enrollment_admin.api.courses.router import router as courses_router
from enrollment_admin.api.enrollments.router import router as enrollments_router
from enrollment_admin.api.students.router import router as students_router
from enrollment_admin.core.config import settings
from enrollment_admin.core.exceptions import ValidationFailed

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# location segments that carry no field information (request part, union tags)
_SKIPPED_LOC_PARTS = {"body", "query", "path", "existing", "new"}


def _error_key(loc) -> str:
    parts = [str(p) for p in loc if str(p) not in _SKIPPED_LOC_PARTS]
    return ".".join(parts) or "body"


def validation_errors_map(errors) -> Dict[str, List[str]]:
    """Group pydantic errors by dotted field path, e.g. `student.nim`."""
    grouped: Dict[str, List[str]] = {}
    for err in errors:
        grouped.setdefault(_error_key(err.get("loc", ())), []).append(err.get("msg", "Invalid value"))
    return grouped


def _unprocessable(message: str, errors: Dict[str, List[str]]) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"message": message, "errors": errors},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = validation_errors_map(exc.errors())
    logger.info("Rejected %s %s: %s", request.method, request.url.path, ", ".join(errors))
    return _unprocessable("The given data was invalid.", errors)


async def validation_failed_handler(request: Request, exc: ValidationFailed) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, ", ".join(exc.errors))
    return _unprocessable(exc.message, exc.errors)


def create_app() -> FastAPI:
    app = FastAPI(title="Enrollment Admin")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationFailed, validation_failed_handler)

    # Routers
    app.include_router(enrollments_router)
    app.include_router(students_router)
    app.include_router(courses_router)

    return app


app = create_app()
