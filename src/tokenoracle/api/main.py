import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from tokenoracle.api.backfill import router as backfill_router
from tokenoracle.api.prices import router as prices_router
from tokenoracle.container import Container
from tokenoracle.exceptions import TokenOracleError
from tokenoracle.log import configure_logging

logger = logging.getLogger("tokenoracle.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    configure_logging(container.settings().log_level)
    app.state.container = container
    yield
    await container.cache().close()
    await container.http_client().close()
    await container.engine().dispose()


app = FastAPI(title="TokenOracle", version="0.1.0", lifespan=lifespan)


@app.exception_handler(TokenOracleError)
async def token_oracle_error_handler(request: Request, exc: TokenOracleError):
    logger.warning(
        "%s on %s %s: %s %s", exc.reason, request.method, request.url.path, exc, exc.context,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message, "reason": exc.reason})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"error": "Internal server error", "reason": "internal_error"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prices_router)
app.include_router(backfill_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
