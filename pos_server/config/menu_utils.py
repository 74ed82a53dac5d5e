"""
Menu catalog loading utilities.

The catalog is reference data, read once and cached:
- Environment variable POS_MENU_JSON containing a JSON list of menu items
- JSON file at pos_server/config/menu.json
Fallback: the built-in default catalog below.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List


_CACHE: List[Dict[str, Any]] | None = None


DEFAULT_MENU: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Picanha",
        "description": "Picanha grelhada com arroz, farofa e vinagrete",
        "price": "89.90",
        "category": "Carnes",
        "prep_time": 25,
        "allergens": [],
        "has_meat_point": True,
        "customizable_items": ["Farofa", "Vinagrete", "Arroz"],
    },
    {
        "id": "2",
        "name": "Salmão Grelhado",
        "description": "Salmão grelhado com legumes e purê de batatas",
        "price": "79.90",
        "category": "Peixes",
        "prep_time": 20,
        "allergens": ["Peixe"],
        "has_meat_point": False,
        "customizable_items": ["Legumes", "Purê"],
    },
    {
        "id": "3",
        "name": "Massa à Carbonara",
        "description": "Espaguete com molho carbonara tradicional",
        "price": "59.90",
        "category": "Massas",
        "prep_time": 15,
        "allergens": ["Glúten", "Ovo"],
        "has_meat_point": False,
        "customizable_items": ["Bacon", "Queijo"],
    },
]


def get_menu_config() -> List[Dict[str, Any]]:
    """返回原始菜单配置（字典列表）。

    来源优先级：
    1) 环境变量 POS_MENU_JSON (JSON字符串)
    2) 文件 pos_server/config/menu.json
    3) 内置默认菜单
    """
    global _CACHE
    if _CACHE is not None:
        return _CACHE

    # 1) Env var
    env_val = os.getenv("POS_MENU_JSON")
    if env_val:
        try:
            data = json.loads(env_val)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, list):
            _CACHE = [dict(item) for item in data if isinstance(item, dict)]
            return _CACHE

    # 2) JSON file
    cfg_path = Path(__file__).parent / "menu.json"
    if cfg_path.exists():
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            data = None
        if isinstance(data, list):
            _CACHE = [dict(item) for item in data if isinstance(item, dict)]
            return _CACHE

    _CACHE = [dict(item) for item in DEFAULT_MENU]
    return _CACHE


def reset_menu_cache() -> None:
    """清除缓存，下次调用时重新读取配置"""
    global _CACHE
    _CACHE = None
