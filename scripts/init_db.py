"""初始化数据库"""
import argparse
import sys
import os

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import DatabaseManager
from database.models import Tenant
from config.settings import settings
from loguru import logger


# 默认编号序列：(文档类型, 前缀)
DEFAULT_NUMBERINGS = [
    ("invoice", "FAC"),
    ("quote", "COT"),
    ("purchase", "OC"),
    ("support_ticket", "TKT"),
]


def init_database(tenant_id: str, tenant_name: str):
    """初始化数据库和种子数据"""
    logger.info("Initializing database...")

    db = DatabaseManager()

    logger.info("Creating tables...")
    db.create_tables()

    if db.tenants.get_by_id(Tenant, tenant_id) is None:
        db.create_tenant(tenant_name, tenant_id=tenant_id)

    # 插入默认编号序列（已存在的跳过）
    existing = {s.document_type.value for s in db.numberings.list_for_tenant(tenant_id)}
    for document_type, prefix in DEFAULT_NUMBERINGS:
        if document_type in existing:
            continue
        db.create_numbering(tenant_id, document_type, prefix)
        logger.info(f"Created numbering: {document_type} ({prefix})")

    db.close()
    logger.info("Database initialization completed!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="初始化数据库")
    parser.add_argument("--tenant", default=settings.default_tenant_id, help="租户ID")
    parser.add_argument("--name", default="Mi Tienda", help="租户名称")
    args = parser.parse_args()
    init_database(args.tenant, args.name)
