from fastapi import FastAPI, Request, APIRouter
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from devevent.api.v1.routes import events as events_router, bookings as bookings_router, health as health_router
from devevent.cache.redis_client import cache
from devevent.db.session import connector
from devevent.core.config import settings
from devevent.core.errors import DevEventError, ValidationError
from devevent.core.logging import logger

app = FastAPI(title="DevEvent")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DevEventError)
async def devevent_error_handler(request: Request, exc: DevEventError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc} ({exc.to_dict().get('error')})")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code.value} {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies in the same shape as other validation errors."""
    errors = exc.errors()
    error = errors[0] if errors else {}
    loc = [part for part in error.get("loc", ()) if part != "body"]
    field = str(loc[-1]) if loc and isinstance(loc[-1], str) else "body"
    if error.get("type") == "missing":
        message = f"{field} is required"
    else:
        message = error.get("msg", "Invalid request body")
    return await devevent_error_handler(request, ValidationError(field, message))


api_router = APIRouter(prefix="/api/v1")
api_router.include_router(events_router.router)
api_router.include_router(bookings_router.router)
api_router.include_router(health_router.router)

app.include_router(api_router)


@app.on_event("startup")
async def on_startup():
    # A failure here is not fatal: the first request retries the connection.
    try:
        await connector.connect()
    except DevEventError as e:
        logger.warning(f"Storage not reachable at startup: {e}")


@app.on_event("shutdown")
async def on_shutdown():
    await connector.dispose()
    await cache.close()
