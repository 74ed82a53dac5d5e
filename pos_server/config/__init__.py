import os

from .settings import Settings, settings
from .menu_utils import get_menu_config, reset_menu_cache


def get_settings() -> Settings:
    """按 POS_ENV 选择配置：development 使用开发配置，其余使用默认配置"""
    if os.getenv("POS_ENV", "").lower() == "development":
        from .environments.development import DevelopmentSettings
        return DevelopmentSettings()
    return settings


__all__ = ["Settings", "settings", "get_settings", "get_menu_config", "reset_menu_cache"]
