"""租户数据备份与恢复。

备份内容为租户的销售团队、销售记录、提成记录和编号序列，
序列化为 JSON（金额转为字符串以保留精度，时间转为 ISO-8601）。
恢复时跳过已存在的记录，可重复执行。
"""
import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from config.settings import settings
from database import DatabaseManager
from database.models import Commission, DocumentNumbering, Sale, Seller, Tenant

from .models import to_decimal
from .periods import parse_timestamp


BACKUP_VERSION = 1

_SELLER_FIELDS = ("id", "name", "email", "commission_rate",
                  "is_online_channel", "active", "created_at")
_SALE_FIELDS = ("id", "seller_id", "total", "channel", "customer",
                "occurred_at")
_COMMISSION_FIELDS = ("id", "seller_id", "seller_name", "sale_id",
                      "sale_amount", "commission_rate", "commission_amount",
                      "occurred_at")
_NUMBERING_FIELDS = ("id", "document_type", "prefix", "current_number",
                     "min_number", "max_number", "active")

_DATETIME_FIELDS = {"created_at", "occurred_at"}
_DECIMAL_FIELDS = {"total", "sale_amount", "commission_rate", "commission_amount"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, (Decimal, datetime, date)):
        return _jsonable(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _row_to_dict(row: Any, fields) -> Dict[str, Any]:
    return {name: _jsonable(getattr(row, name)) for name in fields}


def _dict_to_kwargs(data: Dict[str, Any], fields) -> Dict[str, Any]:
    kwargs = {}
    for name in fields:
        if name not in data:
            continue
        value = data[name]
        if name in _DATETIME_FIELDS and value is not None:
            value = parse_timestamp(value)
        elif name in _DECIMAL_FIELDS and value is not None:
            value = to_decimal(value)
        kwargs[name] = value
    return kwargs


class BackupManager:
    """租户备份管理器

    Attributes:
        db: 数据库管理器。
        backup_dir: 备份文件目录。
    """

    def __init__(self, db: DatabaseManager,
                 backup_dir: Optional[Union[str, Path]] = None) -> None:
        self.db = db
        self.backup_dir = Path(backup_dir or settings.backup_dir)

    def create_backup(self, tenant_id: str) -> Dict[str, Any]:
        """生成租户数据快照。

        Returns:
            可直接 JSON 序列化的字典。

        Raises:
            NotFoundError: 租户不存在。
        """
        with self.db.get_session() as session:
            tenant = self.db.tenants.get(tenant_id, session=session)

            def _rows(model, fields) -> List[Dict[str, Any]]:
                rows = session.query(model).filter(
                    model.tenant_id == tenant_id
                ).all()
                return [_row_to_dict(r, fields) for r in rows]

            data = {
                "version": BACKUP_VERSION,
                "created_at": datetime.now().isoformat(),
                "tenant": {
                    "id": tenant.id,
                    "name": tenant.name,
                    "plan": tenant.plan,
                    "settings": tenant.settings or {},
                },
                "sellers": _rows(Seller, _SELLER_FIELDS),
                "sales": _rows(Sale, _SALE_FIELDS),
                "commissions": _rows(Commission, _COMMISSION_FIELDS),
                "numberings": _rows(DocumentNumbering, _NUMBERING_FIELDS),
            }

        logger.info(
            f"Backup created for tenant {tenant_id}: "
            f"{len(data['sales'])} sales, {len(data['commissions'])} commissions"
        )
        return data

    def restore_backup(self, tenant_id: str, data: Dict[str, Any]) -> int:
        """把快照恢复到租户，已存在的记录（按ID）跳过。

        租户不存在时按快照中的信息创建。同一文档类型已有编号序列时
        保留现有序列，避免编号回退。

        Returns:
            新插入的记录数。
        """
        inserted = 0
        with self.db.get_session() as session:
            if session.get(Tenant, tenant_id) is None:
                tenant_data = data.get("tenant") or {}
                session.add(Tenant(
                    id=tenant_id,
                    name=tenant_data.get("name", tenant_id),
                    plan=tenant_data.get("plan", "basic"),
                    settings=tenant_data.get("settings") or {},
                ))
                session.flush()

            existing_types = {
                row.document_type
                for row in session.query(DocumentNumbering).filter(
                    DocumentNumbering.tenant_id == tenant_id
                )
            }

            # 按外键依赖顺序插入
            for key, model, fields in (
                ("sellers", Seller, _SELLER_FIELDS),
                ("sales", Sale, _SALE_FIELDS),
                ("commissions", Commission, _COMMISSION_FIELDS),
                ("numberings", DocumentNumbering, _NUMBERING_FIELDS),
            ):
                for item in data.get(key, []):
                    if session.get(model, item.get("id")) is not None:
                        continue
                    if model is DocumentNumbering:
                        if item.get("document_type") in existing_types:
                            continue
                        existing_types.add(item.get("document_type"))
                    kwargs = _dict_to_kwargs(item, fields)
                    kwargs["tenant_id"] = tenant_id
                    session.add(model(**kwargs))
                    inserted += 1
                session.flush()

            session.commit()

        logger.info(f"Restored {inserted} records for tenant {tenant_id}")
        return inserted

    def export_data(self, data: Dict[str, Any], filename: str,
                    directory: Optional[Union[str, Path]] = None) -> Path:
        """把数据写入 ``<filename>-<YYYY-MM-DD>.json``。

        Returns:
            写入的文件路径。
        """
        target_dir = Path(directory) if directory else self.backup_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"{filename}-{date.today().isoformat()}.json"
        path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False, default=_json_default),
            encoding="utf-8",
        )
        return path

    @staticmethod
    def import_data(path: Union[str, Path]) -> Dict[str, Any]:
        """读取 JSON 备份文件。

        Raises:
            ValueError: 文件内容不是合法 JSON。
        """
        try:
            return json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError("Invalid JSON file") from e

    def run_backup(self, tenant_id: str) -> Path:
        """生成快照并写入备份目录（供 BackupScheduler 定时调用）。"""
        path = self.export_data(
            self.create_backup(tenant_id), f"backup-{tenant_id}"
        )
        logger.info(f"Backup for tenant {tenant_id} written to {path}")
        return path
