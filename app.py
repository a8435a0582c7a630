#!/usr/bin/env python3
"""零售销售核心服务 - 入口

启动后台服务，负责：
1. 连接数据库并建表
2. 为每个租户注册定时备份任务

使用方式：
    python app.py

    # 指定数据库
    python app.py --db sqlite:///data/store.db

    # 只为指定租户调度备份，间隔 12 小时
    python app.py --tenant tenant1 --interval 12

环境变量（在 .env 文件中配置，运行 python scripts/setup_env.py 生成）：
    DATABASE_URL           数据库连接地址
    LOG_LEVEL              日志级别（默认 INFO）
    LOG_FILE               日志文件（为空时只输出到 stderr）
    BACKUP_DIR             备份目录
    BACKUP_INTERVAL_HOURS  备份间隔（小时，默认 24）
"""
import argparse
import asyncio
import os
import signal
import sys

from loguru import logger


def setup_logging(level: str, log_file: str = ""):
    """配置 loguru 日志输出"""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
    if log_file:
        logger.add(log_file, level=level.upper(), rotation="10 MB", retention=5)


async def _cleanup(scheduler, db):
    """统一资源清理函数。

    确保调度器和数据库连接被正确关闭。
    """
    logger.info("正在清理资源...")

    if scheduler is not None:
        try:
            scheduler.cancel_all()
            scheduler.shutdown()
        except Exception as e:
            logger.warning(f"停止备份调度器时出错: {e}")

    if db is not None:
        try:
            db.close()
        except Exception as e:
            logger.warning(f"关闭数据库连接时出错: {e}")

    logger.info("服务已停止")


async def main():
    from config.settings import settings

    parser = argparse.ArgumentParser(description="零售销售核心服务")
    parser.add_argument("--db", default=os.getenv("DATABASE_URL", None),
                        help="数据库连接 URL")
    parser.add_argument("--tenant", action="append", default=None,
                        help="只为指定租户调度备份（可重复）")
    parser.add_argument("--interval", type=float,
                        default=settings.backup_interval_hours,
                        help="备份间隔（小时）")
    parser.add_argument("--backup-dir", default=settings.backup_dir,
                        help="备份目录")
    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_file)

    scheduler = None
    db = None

    try:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        from database import DatabaseManager
        from database.models import Tenant
        from sales.backup import BackupManager
        from sales.scheduler import BackupScheduler

        db = DatabaseManager(args.db)
        db.create_tables()
        logger.info(f"数据库已连接: {db.database_url}")

        tenant_ids = args.tenant
        if not tenant_ids:
            tenant_ids = [t.id for t in db.tenants.get_all(Tenant)]

        backups = BackupManager(db, backup_dir=args.backup_dir)
        scheduler = BackupScheduler(
            backups.run_backup,
            scheduler=AsyncIOScheduler(event_loop=asyncio.get_running_loop()),
        )
        for tenant_id in tenant_ids:
            scheduler.schedule(tenant_id, interval_hours=args.interval)
        scheduler.start()

        logger.info(
            f"已为 {len(tenant_ids)} 个租户注册备份任务，"
            f"间隔 {args.interval} 小时，目录 {args.backup_dir}"
        )

        loop = asyncio.get_running_loop()
        shutdown_event = asyncio.Event()
        _shutdown_requested = False

        def signal_handler(signum):
            """处理退出信号"""
            nonlocal _shutdown_requested
            if _shutdown_requested:
                logger.warning("再次收到退出信号，强制退出...")
                for task in asyncio.all_tasks(loop):
                    task.cancel()
                return
            _shutdown_requested = True
            logger.info(f"收到信号 {signum}，正在关闭服务...")
            shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler, sig)

        # 保持运行，直到收到退出信号
        await shutdown_event.wait()

    except asyncio.CancelledError:
        logger.info("任务被取消，正在清理...")
    except KeyboardInterrupt:
        logger.info("收到键盘中断信号")
    finally:
        await _cleanup(scheduler, db)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
