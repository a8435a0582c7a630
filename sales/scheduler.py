"""备份调度器 - 按租户管理可取消的定时备份任务

调度器实例由外部注入（任意 APScheduler 调度器），本类只负责维护
"租户 → 任务" 的注册表；具体的备份逻辑通过回调函数注入。
"""
from typing import Any, Callable, Dict, List, Optional

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from config.settings import settings


class BackupScheduler:
    """定时备份任务注册表

    每个租户最多一个备份任务，重复调度会替换原任务。
    """

    def __init__(self, backup_func: Callable[[str], Any],
                 scheduler: Optional[BaseScheduler] = None):
        """初始化备份调度器

        Args:
            backup_func: 备份回调，参数为租户ID
            scheduler: APScheduler 调度器，默认创建 BackgroundScheduler
        """
        self.scheduler = scheduler or BackgroundScheduler()
        self._backup_func = backup_func
        self._jobs: Dict[str, Job] = {}

    @staticmethod
    def job_id(tenant_id: str) -> str:
        return f"backup:{tenant_id}"

    def schedule(self, tenant_id: str,
                 interval_hours: Optional[float] = None) -> Job:
        """为租户添加定时备份任务（已存在时替换）

        Args:
            tenant_id: 租户ID
            interval_hours: 备份间隔（小时），默认使用 settings.backup_interval_hours

        Returns:
            APScheduler Job 对象
        """
        hours = (
            settings.backup_interval_hours if interval_hours is None
            else interval_hours
        )
        if hours <= 0:
            raise ValueError(f"Backup interval must be positive, got {hours}")

        self.cancel(tenant_id)
        job = self.scheduler.add_job(
            self.run_backup,
            trigger=IntervalTrigger(hours=hours),
            args=[tenant_id],
            id=self.job_id(tenant_id),
            name=f"Backup {tenant_id}",
            replace_existing=True
        )
        self._jobs[tenant_id] = job
        logger.info(f"Scheduled backup for tenant {tenant_id} every {hours}h")
        return job

    def run_backup(self, tenant_id: str) -> bool:
        """执行一次备份，失败只记录日志，不影响后续调度

        Returns:
            是否成功
        """
        try:
            self._backup_func(tenant_id)
        except Exception as e:
            logger.error(f"Automated backup failed for tenant {tenant_id}: {e}")
            return False
        logger.info(f"Automated backup completed for tenant {tenant_id}")
        return True

    def cancel(self, tenant_id: str) -> bool:
        """取消租户的备份任务

        Returns:
            是否存在并已取消
        """
        job = self._jobs.pop(tenant_id, None)
        if job is None:
            return False
        try:
            job.remove()
        except JobLookupError:
            logger.warning(f"Backup job for tenant {tenant_id} was already removed")
        logger.info(f"Cancelled backup for tenant {tenant_id}")
        return True

    def cancel_all(self):
        """取消所有备份任务"""
        for tenant_id in list(self._jobs):
            self.cancel(tenant_id)

    def scheduled_tenants(self) -> List[str]:
        return list(self._jobs)

    def start(self):
        """启动调度器"""
        self.scheduler.start()
        logger.info("Backup scheduler started")

    def shutdown(self):
        """停止调度器"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Backup scheduler stopped")
