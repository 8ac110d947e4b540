import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from royaltyclaims.api.claims import router as claims_router
from royaltyclaims.api.deps import get_settings
from royaltyclaims.api.hypersync import router as hypersync_router
from royaltyclaims.api.ipfs import router as ipfs_router
from royaltyclaims.config import Settings
from royaltyclaims.container import Container
from royaltyclaims.exceptions import ClaimsError

logger = logging.getLogger("royaltyclaims.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    app.state.container = container
    yield
    http_client = container.http_client()
    await http_client.close()


app = FastAPI(title="Royalty Claims", version="0.1.0", lifespan=lifespan)


@app.exception_handler(ClaimsError)
async def claims_error_handler(request: Request, exc: ClaimsError):
    logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(claims_router)
app.include_router(hypersync_router)
app.include_router(ipfs_router)


@app.get("/api/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "version": "0.1.0",
        "registry": "production" if settings.is_production else "development",
        "signing": bool(settings.claims_signer_private_key),
        "submission": bool(settings.transaction_sender_private_key),
    }
