from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

import logger_config  # noqa: F401  configures the loguru sink
from routes.config_route import config_router
from routes.table_reservation_route import table_reservation_router
from routes.table_route import table_router
from services.errors import ConfigurationError, ReservationError

app = FastAPI(title="Table Reservation API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(table_router)
app.include_router(table_reservation_router)
app.include_router(config_router)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    """
    Renders a business rule rejection as a typed error payload.

    Configuration errors are logged as errors since they need an operator;
    everything else is an ordinary rejection of the request.
    """
    if isinstance(exc, ConfigurationError):
        logger.error(f"{request.method} {request.url.path} failed on configuration: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected [{exc.code.value}]: {exc.message}")

    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "errors": [{"code": exc.code.value, "detail": exc.message}]},
        headers=headers,
    )


@app.exception_handler(Exception)
async def general_500_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/")
async def base_path():
    """
    Root endpoint to verify that the API is running.

    Returns:
        dict: A success message.
    """
    return {"success": True}
