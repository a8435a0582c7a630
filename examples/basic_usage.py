"""基础使用示例 - 销售核心入门

本示例展示 DatabaseManager 的基本使用方法：
1. 初始化数据库并创建租户
2. 添加销售员、记录销售（自动生成提成）
3. 配置文档编号并分配编号
4. 查看本周业绩
5. 生成一次备份

运行方式：
    python examples/basic_usage.py
"""
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from database import DatabaseManager
from sales.backup import BackupManager

DATA_DIR = PROJECT_ROOT / "data"
DB_PATH = DATA_DIR / "basic_usage_example.db"
TENANT_ID = "demo"


def main():
    """基础使用示例主函数"""
    print("=" * 60)
    print("销售核心 - 基础使用示例")
    print("=" * 60)

    # ============================================================
    # 步骤 1: 初始化数据库和租户
    # ============================================================
    print("\n📦 步骤 1: 初始化数据库和租户")
    print("-" * 60)

    DATA_DIR.mkdir(exist_ok=True)
    if DB_PATH.exists():
        DB_PATH.unlink()

    db = DatabaseManager(f"sqlite:///{DB_PATH}")
    db.create_tables()
    db.create_tenant("Tienda Demo", tenant_id=TENANT_ID,
                     tenant_settings={"currency": "COP"})
    print(f"✅ 数据库已创建: {db.database_url}")

    # ============================================================
    # 步骤 2: 销售团队和销售记录
    # ============================================================
    print("\n🧑‍💼 步骤 2: 销售团队和销售记录")
    print("-" * 60)

    ana = db.add_seller(TENANT_ID, "Ana", commission_rate=5)
    luis = db.add_seller(TENANT_ID, "Luis", commission_rate="7.5")
    print(f"✅ 已添加销售员 Ana ({ana[:8]}) 和 Luis ({luis[:8]})")

    for data in (
        {"amount": 120000, "channel": "in_person", "seller_id": ana},
        {"amount": 45000, "channel": "in_person", "seller_id": luis},
        {"amount": 89900, "channel": "online", "customer": "web"},
    ):
        result = db.record_sale(TENANT_ID, data)
        print(f"   销售 {result['channel']:<9} {result['amount']:>10,.0f}"
              f"  提成: {result['commission_amount']}")

    # ============================================================
    # 步骤 3: 文档编号
    # ============================================================
    print("\n🔢 步骤 3: 文档编号")
    print("-" * 60)

    db.create_numbering(TENANT_ID, "quote", "COT")
    print(f"   预览: {db.preview_document_number(TENANT_ID, 'quote')}")
    for _ in range(3):
        print(f"   分配: {db.next_document_number(TENANT_ID, 'quote')}")

    # ============================================================
    # 步骤 4: 本周业绩
    # ============================================================
    print("\n📊 步骤 4: 本周业绩")
    print("-" * 60)

    for summary in db.get_performance(TENANT_ID, "week"):
        print(f"   {summary['seller_name']:<14} 单数: {summary['total_sales']}"
              f"  营收: {summary['total_revenue']:>10,.0f}"
              f"  提成: {summary['total_commissions']:>8,.0f}")

    # ============================================================
    # 步骤 5: 备份
    # ============================================================
    print("\n💾 步骤 5: 备份")
    print("-" * 60)

    path = BackupManager(db, backup_dir=DATA_DIR / "backups").run_backup(TENANT_ID)
    print(f"✅ 备份已写入: {path}")

    db.close()
    print("\n" + "=" * 60)
    print("示例完成")
    print("=" * 60)


if __name__ == "__main__":
    main()
