"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、排期时区标签、默认用户等可配置项。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("WEEKPLANNER_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "WEEKPLANNER_DB_PATH",
        str(_get_base_dir() / "sqlite" / "weekplanner.db"),
    )


def get_schedule_timezone() -> str:
    """写入 Schedule.timezone 的时区标签"""
    return os.environ.get("WEEKPLANNER_TIMEZONE", "UTC")


def get_default_user() -> str:
    """未携带用户标识时使用的用户"""
    return os.environ.get("WEEKPLANNER_DEFAULT_USER", "owner")


# 标题最大长度（超出部分截断）
TITLE_MAX_LENGTH: int = 200
