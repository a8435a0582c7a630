"""数据库初始化测试。

测试数据库创建、表结构、连接等基础功能。
"""
import os
import shutil
import tempfile

from sqlalchemy import inspect

from database import DatabaseManager
from database.connection import DatabaseConnection


class TestDatabaseInitialization:
    """数据库初始化测试类。"""

    def test_create_tables(self):
        """测试创建数据库表。"""
        temp_dir = tempfile.mkdtemp()
        db_path = os.path.join(temp_dir, "test_init.db")

        try:
            db = DatabaseManager(database_url=f"sqlite:///{db_path}")
            db.create_tables()

            tables = inspect(db.engine).get_table_names()
            for table in ("tenants", "sellers", "sales", "commissions",
                          "document_numberings", "audit_logs"):
                assert table in tables
            db.close()
        finally:
            shutil.rmtree(temp_dir)

    def test_create_tables_is_idempotent(self, temp_db):
        """重复建表不报错。"""
        temp_db.create_tables()
        temp_db.create_tables()

    def test_numbering_unique_constraint(self, temp_db):
        """编号序列表的 (tenant_id, document_type) 唯一约束。"""
        constraints = inspect(temp_db.engine).get_unique_constraints(
            "document_numberings"
        )
        columns = [c["column_names"] for c in constraints]
        assert ["tenant_id", "document_type"] in columns

    def test_database_url_configuration(self):
        """测试数据库URL配置。"""
        sqlite_url = "sqlite:///test.db"
        conn = DatabaseConnection(database_url=sqlite_url)
        assert conn.database_url == sqlite_url
        conn.close()

    def test_default_url_from_settings(self, monkeypatch):
        """未指定URL时使用 settings.database_url。"""
        from config.settings import settings
        monkeypatch.setattr(settings, "database_url", "sqlite:///:memory:")
        conn = DatabaseConnection()
        assert conn.database_url == "sqlite:///:memory:"
        conn.close()
