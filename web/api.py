"""行情看板 Web API"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coinboard import __version__
from coinboard.core.config import Config
from coinboard.core.error_handler import MarketDataError
from coinboard.core.logger import get_logger
from coinboard.modules.markets.models import DEFAULT_PAGE
from coinboard.modules.markets.proxy import MarketProxyCache

logger = get_logger(__name__)

# 服务初始化
config = Config()
market_proxy = MarketProxyCache.from_config(config)

MAX_PER_PAGE = int(config.get("server.max_per_page", 250))
DEFAULT_PER_PAGE = int(config.get("server.default_per_page", 50))


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await market_proxy.upstream.close()


app = FastAPI(title="Coinboard Market API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(o).strip() for o in config.get("server.cors_origins", [])],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["x-cache"],
)


def error_response(exc: MarketDataError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "query")
        problems.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request: " + "; ".join(problems), "code": "invalid_request"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, _exc: Exception) -> JSONResponse:
    logger.exception(f"未处理的异常 {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": "internal_error"},
    )


@app.get("/api/health")
async def health():
    return {"status": "ok", "cache": market_proxy.stats()}


@app.get("/api/markets")
async def get_markets(
    page: int = Query(DEFAULT_PAGE, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
):
    try:
        result = await market_proxy.get_markets(page=page, per_page=per_page)
    except MarketDataError as e:
        logger.error(f"获取行情失败 page={page} per_page={per_page}: {e.code} {e.message}")
        return error_response(e)

    return JSONResponse(status_code=200, content=result.coins, headers=result.headers())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.get("server.host", "127.0.0.1"), port=int(config.get("server.port", 8000)))
