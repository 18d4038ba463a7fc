"""報表 API 入口：掛載 /reports 路由與健康檢查。"""

from __future__ import annotations

from typing import Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from usage_analytics.backend.api.routes.reports import router as reports_router
from usage_analytics.config.settings import Settings, get_settings


def create_app(settings: Settings | None = None) -> FastAPI:
    """建立 FastAPI 實例；未傳入設定時使用 get_settings()。"""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app.name,
        version="0.1.0",
        docs_url=settings.api.docs_url,
        openapi_url=settings.api.openapi_url,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.api.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(reports_router, prefix=settings.api.prefix)
    # 路由依賴與 app 使用同一份設定
    app.dependency_overrides[get_settings] = lambda: settings

    @app.get("/health", tags=["system"])
    def health_check() -> Dict[str, str]:
        return {"status": "ok", "environment": settings.app.environment}

    return app


app = create_app()
