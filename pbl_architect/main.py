"""FastAPI 入口，挂载暂存区、知识库、作业与提交路由。"""

from fastapi import FastAPI

from pbl_architect import __version__
from pbl_architect.api import router as api_router
from pbl_architect.config import configure_logging, get_settings


def create_app() -> FastAPI:
    """应用工厂，便于测试与拓展路由。"""

    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title="PBL Architect API", version=__version__)
    app.include_router(api_router)

    @app.get("/health")
    def health() -> dict[str, object]:
        return {
            "status": "ok",
            "model": settings.gemini_model,
            "ai_available": bool(settings.gemini_api_key),
        }

    return app


app = create_app()
