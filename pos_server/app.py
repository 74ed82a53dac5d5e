"""
餐厅收银点餐系统后端服务 - 主应用入口
提供点餐、厨房出餐、分账、结账和收银台管理的完整后端API服务

主要功能模块：
- 菜单查询
- 订单创建、改菜和状态流转
- 厨房队列
- 分账与结账
- 收银台开关和销售报表
- 操作日志记录

技术栈：FastAPI + DuckDB + JWT认证
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from typing import Optional

from .core.context import build_context
from .core.exceptions import BaseApplicationError
from .core.error_handler import (
    application_error_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler
)
from .core.record_store import RecordStore
from .config import Settings, get_settings
from .models.menu import MenuCatalog
from .api import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    db = app.state.context.db
    if db is not None:
        try:
            db.init_database()
            print("Database initialized successfully")
        except BaseApplicationError as e:
            print(f"Database initialization failed: {e.message}")
            # 不要让应用启动失败，允许在运行时重试

    yield

    if db is not None:
        db.close()


def create_app(settings: Optional[Settings] = None, store: Optional[RecordStore] = None,
               catalog: Optional[MenuCatalog] = None) -> FastAPI:
    """
    创建FastAPI应用

    Args:
        settings: 配置，缺省按 POS_ENV 加载
        store: 记录存储，缺省按 database_url 创建 DuckDB 存储
        catalog: 菜单，缺省按菜单配置加载
    """
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="餐厅收银点餐系统API",
        debug=settings.debug,
        lifespan=lifespan
    )
    app.state.context = build_context(settings, store=store, catalog=catalog)

    # 添加中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # 在生产环境中应该限制具体域名
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 注册异常处理器
    app.add_exception_handler(BaseApplicationError, application_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # 注册路由
    app.include_router(api_router, prefix=settings.api_prefix)

    # 健康检查
    @app.get("/health")
    def health_check():
        try:
            app.state.context.store.find("register_locks", limit=1)
            return {
                "status": "healthy",
                "version": settings.api_version,
                "database": "connected"
            }
        except BaseApplicationError as e:
            return {
                "status": "unhealthy",
                "version": settings.api_version,
                "database": f"error: {e.message}"
            }

    @app.get("/")
    async def root():
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "description": "餐厅收银点餐系统API"
        }

    return app


# 应用实例
app = create_app()


if __name__ == "__main__":
    import uvicorn
    print("🚀 启动收银点餐服务...")
    uvicorn.run(app, host="127.0.0.1", port=8000)
