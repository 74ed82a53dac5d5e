from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 数据库配置
    database_url: str = "duckdb://./pos_server/data/pos.duckdb"

    # JWT配置
    jwt_secret_key: str = "your-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 12  # 一个营业班次

    # API配置
    api_title: str = "Restaurante POS API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    # 业务规则
    service_fee_rate: Decimal = Decimal("0.10")
    min_split_participants: int = 2
    max_split_participants: int = 10
    strict_status_transitions: bool = True
    require_open_register_for_payment: bool = True

    # 开发模式
    debug: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False


# 全局设置实例
settings = Settings()
