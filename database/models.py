"""SQLAlchemy ORM 模型定义。

本模块定义了所有数据库表的ORM模型，包括：
- 租户（所有数据都按租户隔离）
- 销售团队、销售记录、提成记录
- 文档编号序列
- 审计日志
"""
import uuid
from typing import Dict, Any, List, Optional
from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, Integer,
    DECIMAL, ForeignKey, JSON, UniqueConstraint
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from datetime import datetime

# SQLAlchemy declarative base，所有模型都继承自此类
Base = declarative_base()

# 允许使用旧式类型注解（兼容 SQLAlchemy 2.0）
Base.__allow_unmapped__ = True


def new_id() -> str:
    return str(uuid.uuid4())


class Tenant(Base):
    """租户表模型。

    Attributes:
        id: 主键，字符串ID。
        name: 租户（商户）名称。
        plan: 订阅套餐：basic / pro / enterprise。
        settings: JSON 租户级设置（店铺名、币种、主题、地址等）。
        created_at: 创建时间。
    """
    __tablename__ = "tenants"

    id: str = Column(String(36), primary_key=True, default=new_id)
    name: str = Column(String(100), nullable=False)
    plan: str = Column(String(20), default="basic")
    settings: Dict[str, Any] = Column(JSON, default={})
    created_at: datetime = Column(DateTime, default=datetime.now)

    sellers: List["Seller"] = relationship("Seller", back_populates="tenant")


class Seller(Base):
    """销售团队成员表模型。

    线上渠道通常不入库，统计时作为虚拟销售员追加；
    如果名单中存在 is_online_channel=True 的记录，也按线上渠道处理。

    Attributes:
        id: 主键。
        tenant_id: 所属租户。
        name: 姓名。
        email: 邮箱。
        commission_rate: 提成率，DECIMAL(5,2)，范围0-100。
        is_online_channel: 是否为线上渠道。
        active: 是否在职。
        created_at: 创建时间。
    """
    __tablename__ = "sellers"

    id: str = Column(String(36), primary_key=True, default=new_id)
    tenant_id: str = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name: str = Column(String(100), nullable=False)
    email: Optional[str] = Column(String(200))
    commission_rate: float = Column(DECIMAL(5, 2), default=0)
    is_online_channel: bool = Column(Boolean, default=False)
    active: bool = Column(Boolean, default=True)
    created_at: datetime = Column(DateTime, default=datetime.now)

    tenant: "Tenant" = relationship("Tenant", back_populates="sellers")
    commissions: List["Commission"] = relationship("Commission", back_populates="seller")


class Sale(Base):
    """销售记录表模型（创建后不修改）。

    Attributes:
        id: 主键。
        tenant_id: 所属租户。
        seller_id: 销售员，线上销售为空。
        total: 销售金额，DECIMAL(12,2)。
        channel: 渠道：online / in_person。
        customer: 顾客名称（可选）。
        occurred_at: 销售时间。
    """
    __tablename__ = "sales"

    id: str = Column(String(36), primary_key=True, default=new_id)
    tenant_id: str = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    seller_id: Optional[str] = Column(String(36), ForeignKey("sellers.id"))
    total: float = Column(DECIMAL(12, 2), nullable=False, default=0)
    channel: str = Column(String(20), nullable=False)
    customer: Optional[str] = Column(String(100))
    occurred_at: datetime = Column(DateTime, nullable=False, default=datetime.now, index=True)

    commission: Optional["Commission"] = relationship(
        "Commission", back_populates="sale", uselist=False
    )


class Commission(Base):
    """提成记录表模型（销售时创建，不修改）。

    Attributes:
        id: 主键。
        tenant_id: 所属租户。
        seller_id: 获得提成的销售员。
        seller_name: 销售员姓名（冗余）。
        sale_id: 关联销售。
        sale_amount: 销售金额。
        commission_rate: 提成率。
        commission_amount: 提成金额。
        occurred_at: 时间。
    """
    __tablename__ = "commissions"

    id: str = Column(String(36), primary_key=True, default=new_id)
    tenant_id: str = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    seller_id: str = Column(String(36), ForeignKey("sellers.id"), nullable=False)
    seller_name: Optional[str] = Column(String(100))
    sale_id: str = Column(String(36), ForeignKey("sales.id"), nullable=False)
    sale_amount: float = Column(DECIMAL(12, 2), nullable=False)
    commission_rate: float = Column(DECIMAL(5, 2), nullable=False)
    commission_amount: float = Column(DECIMAL(12, 2), nullable=False)
    occurred_at: datetime = Column(DateTime, nullable=False, default=datetime.now, index=True)

    seller: "Seller" = relationship("Seller", back_populates="commissions")
    sale: "Sale" = relationship("Sale", back_populates="commission")


class DocumentNumbering(Base):
    """文档编号序列表模型。

    每个租户每种文档类型只有一个序列。

    Attributes:
        id: 主键。
        tenant_id: 所属租户。
        document_type: invoice / quote / purchase / support_ticket。
        prefix: 编号前缀。
        current_number: 下一个将要分配的编号。
        min_number: 下限。
        max_number: 上限。
        active: 是否启用。
    """
    __tablename__ = "document_numberings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "document_type", name="uq_numbering_tenant_type"),
    )

    id: str = Column(String(36), primary_key=True, default=new_id)
    tenant_id: str = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    document_type: str = Column(String(30), nullable=False)
    prefix: str = Column(String(20), nullable=False, default="")
    current_number: int = Column(Integer, nullable=False, default=1)
    min_number: int = Column(Integer, nullable=False, default=1)
    max_number: int = Column(Integer, nullable=False, default=999999)
    active: bool = Column(Boolean, default=True)
    created_at: datetime = Column(DateTime, default=datetime.now)
    updated_at: datetime = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class AuditLog(Base):
    """审计日志表模型（只追加）。

    Attributes:
        id: 主键，自增。
        tenant_id: 所属租户。
        user_id: 操作人（系统操作为空）。
        action: 动作，如 allocate / create / update。
        entity_type: 实体类型。
        entity_id: 实体ID。
        old_values: 变更前的值。
        new_values: 变更后的值。
        timestamp: 时间。
    """
    __tablename__ = "audit_logs"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id: str = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    user_id: Optional[str] = Column(String(36))
    action: str = Column(String(50), nullable=False)
    entity_type: str = Column(String(50), nullable=False)
    entity_id: str = Column(String(36), nullable=False)
    old_values: Optional[Dict[str, Any]] = Column(JSON)
    new_values: Optional[Dict[str, Any]] = Column(JSON)
    notes: Optional[str] = Column(Text)
    timestamp: datetime = Column(DateTime, default=datetime.now)
