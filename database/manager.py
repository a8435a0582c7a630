"""数据库管理器 —— 统一门面（Facade）。

DatabaseManager 是 database 模块的统一入口，组合了所有子仓库，
提供两套 API：

1. **子仓库访问**（细粒度）：
   通过 ``db.sellers``、``db.numberings`` 等属性直接访问子仓库。

2. **便捷方法**（粗粒度）：
   提供扁平化的方法（如 ``record_sale()``、``get_performance()``），
   把存储与 sales 包中的纯计算函数串联起来，返回字典/基本类型。

所有数据按租户隔离，参考时间 ``now`` 可由调用方注入。
"""
from typing import Optional, List, Dict, Any, Union
from datetime import datetime
from sqlalchemy.orm import Session
from loguru import logger

from sales import numbering
from sales.commission import build_commission
from sales.errors import NotFoundError
from sales.models import (
    Channel, DocumentType, HumanSeller, NumberingSequence, Period,
)
from sales.performance import compute_performance
from sales.periods import period_cutoff

from .connection import DatabaseConnection
from .entity_repos import SellerRepository, TenantRepository
from .business_repos import (
    CommissionRepository, NumberingRepository, SaleRepository,
)
from .system_repos import AuditLogRepository
from .models import Seller


class DatabaseManager:
    """数据库管理器 —— 统一门面。

    Attributes:
        conn: 数据库连接管理器。
        tenants: 租户仓库。
        sellers: 销售团队仓库。
        sales: 销售记录仓库。
        commissions: 提成记录仓库。
        numberings: 文档编号序列仓库。
        audit_logs: 审计日志仓库。

    Example::

        db = DatabaseManager("sqlite:///data/store.db")
        db.create_tables()

        tenant = db.create_tenant("Mi Tienda", tenant_id="tenant1")
        db.record_sale("tenant1", {"amount": 120, "channel": "online"})
        summaries = db.get_performance("tenant1", "week")
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """初始化数据库管理器。

        Args:
            database_url: 数据库连接URL。如果为None则使用settings配置。
        """
        # 基础设施层
        self.conn = DatabaseConnection(database_url)

        # 实体仓库
        self.tenants = TenantRepository(self.conn)
        self.sellers = SellerRepository(self.conn)

        # 业务记录仓库
        self.sales = SaleRepository(self.conn)
        self.commissions = CommissionRepository(self.conn)
        self.numberings = NumberingRepository(self.conn)

        # 系统数据仓库
        self.audit_logs = AuditLogRepository(self.conn)

    # ================================================================
    # 基础设施方法
    # ================================================================

    def create_tables(self) -> None:
        """创建所有数据库表（幂等操作）。"""
        self.conn.create_tables()

    def get_session(self) -> Session:
        """获取数据库会话。"""
        return self.conn.get_session()

    @property
    def database_url(self) -> str:
        """数据库连接URL。"""
        return self.conn.database_url

    @property
    def engine(self):
        """SQLAlchemy 引擎对象。"""
        return self.conn.engine

    def execute_raw_sql(self, sql: str,
                        params: Optional[dict] = None) -> Any:
        """执行原始 SQL 语句。"""
        return self.conn.execute_raw_sql(sql, params)

    def close(self) -> None:
        """关闭数据库连接，释放所有资源。"""
        self.conn.close()

    # ================================================================
    # 便捷写入方法
    # ================================================================

    def create_tenant(self, name: str, tenant_id: Optional[str] = None,
                      plan: str = "basic",
                      tenant_settings: Optional[Dict[str, Any]] = None
                      ) -> str:
        """创建租户。

        Returns:
            租户ID。
        """
        return self.tenants.create(
            name, tenant_id=tenant_id, plan=plan,
            tenant_settings=tenant_settings
        ).id

    def add_seller(self, tenant_id: str, name: str,
                   commission_rate: Any = 5,
                   email: Optional[str] = None) -> str:
        """新增销售员并记录审计日志。

        Returns:
            销售员ID。
        """
        with self.get_session() as session:
            self.tenants.get(tenant_id, session=session)
            seller = self.sellers.create(
                tenant_id, name, commission_rate=commission_rate,
                email=email, session=session
            )
            self.audit_logs.record(
                tenant_id, "create", "seller", seller.id,
                new_values={
                    "name": name,
                    "commission_rate": float(seller.commission_rate),
                },
                session=session,
            )
            session.commit()
            return seller.id

    def record_sale(self, tenant_id: str,
                    sale_data: Dict[str, Any]) -> Dict[str, Any]:
        """保存销售记录，门店销售同时按销售员当前提成率生成提成。

        销售和提成在同一事务中提交。

        Args:
            tenant_id: 所属租户。
            sale_data: 销售数据字典，详见 SaleRepository.save。

        Returns:
            包含 sale_id、amount、channel、commission_id、
            commission_amount 的字典（无提成时后两项为 None）。

        Raises:
            NotFoundError: 租户或销售员不存在。
            ValidationError: 销售数据不合法。
        """
        with self.get_session() as session:
            self.tenants.get(tenant_id, session=session)
            sale = self.sales.save(tenant_id, sale_data, session=session)

            commission = None
            if sale.channel is Channel.IN_PERSON and sale.seller_id:
                row = self.sellers.get_by_id(
                    Seller, sale.seller_id, session=session
                )
                if row is None or row.tenant_id != tenant_id:
                    raise NotFoundError(f"Seller {sale.seller_id} not found")
                seller = self.sellers.to_value(row)
                if isinstance(seller, HumanSeller):
                    commission = self.commissions.save(
                        tenant_id, build_commission(seller, sale),
                        session=session
                    )

            session.commit()

        logger.debug(
            f"Recorded {sale.channel.value} sale {sale.id} "
            f"for tenant {tenant_id}"
        )
        return {
            "sale_id": sale.id,
            "amount": float(sale.amount),
            "channel": sale.channel.value,
            "commission_id": commission.id if commission else None,
            "commission_amount": (
                float(commission.commission_amount) if commission else None
            ),
        }

    def create_numbering(self, tenant_id: str,
                         document_type: Union[DocumentType, str],
                         prefix: str, min_number: int = 1,
                         max_number: int = 999999,
                         start_number: Optional[int] = None
                         ) -> NumberingSequence:
        """创建文档编号序列。"""
        self.tenants.get(tenant_id)
        sequence = self.numberings.create(
            tenant_id, document_type, prefix,
            min_number=min_number, max_number=max_number,
            start_number=start_number,
        )
        self.audit_logs.record(
            tenant_id, "create", "numbering", sequence.id,
            new_values={
                "document_type": sequence.document_type.value,
                "prefix": sequence.prefix,
                "current_number": sequence.current_number,
                "min_number": sequence.min_number,
                "max_number": sequence.max_number,
            },
        )
        return sequence

    def set_numbering_active(self, tenant_id: str,
                             document_type: Union[DocumentType, str],
                             active: bool) -> NumberingSequence:
        """启用或停用编号序列。"""
        sequence = self.numberings.set_active(tenant_id, document_type, active)
        self.audit_logs.record(
            tenant_id, "activate" if active else "deactivate",
            "numbering", sequence.id,
        )
        return sequence

    def next_document_number(self, tenant_id: str,
                             document_type: Union[DocumentType, str],
                             user_id: Optional[str] = None) -> str:
        """分配下一个文档编号（持久化并记录审计日志）。

        Returns:
            格式化后的编号，如 ``COT000001``。
        """
        formatted, sequence = self.numberings.allocate(tenant_id, document_type)
        self.audit_logs.record(
            tenant_id, "allocate", "numbering", sequence.id,
            old_values={"current_number": sequence.current_number - 1},
            new_values={"current_number": sequence.current_number,
                        "number": formatted},
            user_id=user_id,
        )
        logger.info(f"Allocated {formatted} for tenant {tenant_id}")
        return formatted

    # ================================================================
    # 便捷查询方法
    # ================================================================

    def preview_document_number(self, tenant_id: str,
                                document_type: Union[DocumentType, str]
                                ) -> str:
        """预览下一个文档编号（不分配）。"""
        return numbering.preview_next(
            self.numberings.get(tenant_id, document_type)
        )

    def get_performance(self, tenant_id: str,
                        period: Union[Period, str] = Period.TODAY,
                        now: Optional[datetime] = None
                        ) -> List[Dict[str, Any]]:
        """计算租户在统计周期内每个销售员的业绩。

        Args:
            tenant_id: 租户ID。
            period: today / week / month。
            now: 参考时间，默认当前本地时间。

        Returns:
            业绩汇总字典列表，线上渠道在最后。
        """
        now = now or datetime.now()
        cutoff = period_cutoff(period, now)

        with self.get_session() as session:
            roster = self.sellers.get_roster(tenant_id, session=session)
            sales = self.sales.get_since(tenant_id, cutoff, session=session)
            commissions = self.commissions.get_since(
                tenant_id, cutoff, session=session
            )

        summaries = compute_performance(
            roster, sales, commissions, period, now
        )
        return [s.to_dict() for s in summaries]

    def get_seller_list(self, tenant_id: str,
                        active_only: bool = True) -> List[Dict[str, Any]]:
        """获取销售员列表。

        Returns:
            销售员信息字典列表。
        """
        return [
            {
                "id": s.id,
                "name": s.name,
                "commission_rate": float(s.commission_rate),
                "is_online_channel": s.is_online_channel,
                "active": s.active,
            }
            for s in self.sellers.get_roster(tenant_id, active_only=active_only)
        ]
