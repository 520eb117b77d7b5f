# luckybet/main.py
import logging, sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from luckybet.core.config import Settings, settings
from luckybet.core.errors import InvalidInput, LuckyBetError
from luckybet.routers.lucky_bet import nonce_router, router as lucky_bet_router
from luckybet.services.context import LuckyBetContext

logging.basicConfig(
    level=logging.WARNING,  # 根日志级别
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# 降噪
logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)
logging.getLogger("apscheduler").setLevel(logging.ERROR)
logging.getLogger("httpx").setLevel(logging.WARNING)

# 保留下注 / 同步日志
logging.getLogger("luckybet.services.bet_service").setLevel(logging.INFO)
logging.getLogger("luckybet.tasks.block_watcher").setLevel(logging.INFO)
logging.getLogger("luckybet.tasks.day_watcher").setLevel(logging.INFO)
logging.getLogger("luckybet.services.context").setLevel(logging.INFO)


def create_app(ctx: LuckyBetContext | None = None, cfg: Settings = settings, watch: bool | None = None) -> FastAPI:
    if watch is None:
        watch = cfg.WATCH_ENABLED

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context = ctx or LuckyBetContext.from_settings(cfg)
        await context.start(watch=watch)
        app.state.ctx = context
        yield
        await context.stop()

    app = FastAPI(title=cfg.APP_NAME, version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 业务错误统一返回 {ret, msg}，HTTP 200，和老客户端保持一致
    @app.exception_handler(LuckyBetError)
    async def lucky_bet_error_handler(request: Request, exc: LuckyBetError):
        return JSONResponse(status_code=200, content=exc.to_dict())

    # 参数校验失败也走 ret=1，不返回 422
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        msg = "; ".join(f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in exc.errors())
        return JSONResponse(status_code=200, content=InvalidInput(msg or None).to_dict())

    app.include_router(lucky_bet_router)
    app.include_router(nonce_router)

    @app.get("/ping")
    async def ping():
        return {"ok": True, "env": cfg.APP_ENV}

    return app


def main():
    uvicorn.run(create_app(), host=settings.APP_HOST, port=settings.APP_PORT)


if __name__ == "__main__":
    main()
