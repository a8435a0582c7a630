"""全局配置管理

所有用户可配置项均通过 .env 文件设置，运行时自动加载到此处。

使用方式：
    1. 运行 python scripts/setup_env.py 生成 .env 文件
    2. 或手动创建 .env 文件
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置 - 所有字段均可通过 .env 或环境变量覆盖"""

    # ========== 数据库 ==========
    database_url: str = "sqlite:///data/store.db"

    # ========== 日志 ==========
    log_level: str = "INFO"
    log_file: str = ""  # 为空时只输出到 stderr

    # ========== 租户 ==========
    default_tenant_id: str = "tenant1"

    # ========== 文档编号 ==========
    numbering_allocation_retries: int = 3

    # ========== 备份 ==========
    backup_dir: str = "data/backups"
    backup_interval_hours: int = 24

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# 全局配置实例
settings = Settings()
