#!/usr/bin/env python3
"""交互式生成 .env 配置文件

使用方式：
    python scripts/setup_env.py

按分组引导填写配置项，逐项校验输入，最后用 Settings 整体校验一遍再写入 .env。
"""
import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
ENV_FILE = os.path.join(PROJECT_ROOT, ".env")
sys.path.insert(0, PROJECT_ROOT)

from pydantic import ValidationError

from config.settings import Settings

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _positive_int(value: str) -> str:
    if not value.isdigit() or int(value) <= 0:
        raise ValueError("需要正整数")
    return value


def _log_level(value: str) -> str:
    if value.upper() not in LOG_LEVELS:
        raise ValueError(f"可选值: {', '.join(LOG_LEVELS)}")
    return value.upper()


# 分组：(分组标题, [(env_key, 描述, 默认值, 校验函数)])
SECTIONS = [
    ("数据库", [
        ("DATABASE_URL", "数据库连接地址", "sqlite:///data/store.db", None),
    ]),
    ("日志", [
        ("LOG_LEVEL", "日志级别", "INFO", _log_level),
        ("LOG_FILE", "日志文件路径（留空只输出到终端）", "", None),
    ]),
    ("租户", [
        ("DEFAULT_TENANT_ID", "默认租户ID", "tenant1", None),
    ]),
    ("文档编号", [
        ("NUMBERING_ALLOCATION_RETRIES", "编号并发冲突重试次数", "3", _positive_int),
    ]),
    ("备份", [
        ("BACKUP_DIR", "备份目录", "data/backups", None),
        ("BACKUP_INTERVAL_HOURS", "自动备份间隔（小时）", "24", _positive_int),
    ]),
]


def ask(key: str, desc: str, default: str, validator) -> str:
    """读取单个配置项，校验失败时重新输入"""
    default_hint = f" (默认: {default})" if default else ""
    print(f"📝 {desc}")
    while True:
        value = input(f"  {key}={default_hint}: ").strip() or default
        if validator is None or not value:
            return value
        try:
            return validator(value)
        except ValueError as e:
            print(f"  ❌ {key} 无效：{e}")


def main():
    print()
    print("=" * 60)
    print("  Retail Sales Core 配置向导")
    print("=" * 60)
    print()

    if os.path.exists(ENV_FILE):
        print(f"⚠️  检测到已有 .env 文件: {ENV_FILE}")
        if input("是否覆盖？(y/N): ").strip().lower() != "y":
            print("已取消。")
            return
        print()

    values = {}
    env_lines = ["# Retail Sales Core 配置文件", "# 由 scripts/setup_env.py 生成"]
    for title, items in SECTIONS:
        print(f"--- {title} ---")
        env_lines.extend(["", f"# === {title} ==="])
        for key, desc, default, validator in items:
            values[key] = ask(key, desc, default, validator)
            env_lines.append(f"{key}={values[key]}")
        print()

    # 与应用启动时相同的解析规则再校验一次
    try:
        Settings(_env_file=None, **{k.lower(): v for k, v in values.items()})
    except ValidationError as e:
        print(f"❌ 配置校验失败，未写入 .env：\n{e}")
        sys.exit(1)

    with open(ENV_FILE, "w", encoding="utf-8") as f:
        f.write("\n".join(env_lines) + "\n")

    print("=" * 60)
    print(f"  ✅ 配置文件已生成: {ENV_FILE}")
    print()
    print("  初始化数据库：")
    print("    python scripts/init_db.py")
    print()
    print("  启动服务：")
    print("    python app.py")
    print("=" * 60)


if __name__ == "__main__":
    main()
