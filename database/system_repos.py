"""系统数据仓库 —— 系统级数据的数据访问层。

管理审计日志：记录编号分配、序列启停、销售员变更等重要操作，
用于追溯和审计。审计日志只追加，不修改。
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session

from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import AuditLog


class AuditLogRepository(BaseCRUD):
    """审计日志 仓库。"""

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    def record(self, tenant_id: str, action: str, entity_type: str,
               entity_id: str,
               old_values: Optional[Dict[str, Any]] = None,
               new_values: Optional[Dict[str, Any]] = None,
               user_id: Optional[str] = None,
               notes: Optional[str] = None,
               session: Optional[Session] = None) -> int:
        """写入一条审计日志。

        Args:
            tenant_id: 所属租户。
            action: 动作（create / update / allocate / activate / deactivate）。
            entity_type: 实体类型（seller / numbering / sale）。
            entity_id: 实体ID。
            old_values: 变更前的值（可选）。
            new_values: 变更后的值（可选）。
            user_id: 操作人（可选，系统操作为空）。
            notes: 备注（可选）。

        Returns:
            审计日志ID。
        """
        def _do(sess):
            log = AuditLog(
                tenant_id=tenant_id,
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id),
                old_values=old_values,
                new_values=new_values,
                notes=notes,
            )
            sess.add(log)
            sess.flush()
            return log.id

        if session:
            return _do(session)

        with self._get_session() as sess:
            log_id = _do(sess)
            sess.commit()
            return log_id

    def get_for_entity(self, tenant_id: str, entity_type: str,
                       entity_id: str,
                       session: Optional[Session] = None) -> List[Dict[str, Any]]:
        """获取某个实体的审计记录（按时间顺序）。

        Returns:
            审计日志字典列表。
        """
        def _query(sess):
            logs = sess.query(AuditLog).filter(
                AuditLog.tenant_id == tenant_id,
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == str(entity_id),
            ).order_by(AuditLog.id).all()
            return [
                {
                    "id": log.id,
                    "user_id": log.user_id,
                    "action": log.action,
                    "old_values": log.old_values,
                    "new_values": log.new_values,
                    "notes": log.notes,
                    "timestamp": log.timestamp,
                }
                for log in logs
            ]

        if session:
            return _query(session)

        with self._get_session() as sess:
            return _query(sess)
