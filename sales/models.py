"""销售核心值对象。

本模块定义核心计算使用的不可变数据结构：
- 销售记录、提成记录（创建后不可修改）
- 销售人员：人工销售员与线上渠道两种变体
- 业绩汇总（按需计算，从不持久化）
- 文档编号序列

这些类型不依赖数据库，由 database 模块的仓库负责与 ORM 对象互相转换。
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union


ONLINE_CHANNEL_ID = "online-channel"
ONLINE_CHANNEL_NAME = "Canal Online"


def to_decimal(value: Any) -> Decimal:
    """宽松地把金额转换为 Decimal，缺失或无法解析时返回 0。"""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        # float 先转 str，避免二进制误差被带入
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


class Channel(Enum):
    """销售渠道"""
    ONLINE = "online"          # 线上商城
    IN_PERSON = "in_person"    # 门店/POS

    @classmethod
    def _missing_(cls, value):
        # 旧数据使用 "pos" 表示门店销售
        if value == "pos":
            return cls.IN_PERSON
        return None


class Period(Enum):
    """业绩统计周期"""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value: Union["Period", str, None]) -> "Period":
        """解析统计周期，无法识别时回退到 today。"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.TODAY


class DocumentType(Enum):
    """可编号的文档类型"""
    INVOICE = "invoice"
    QUOTE = "quote"
    PURCHASE = "purchase"
    SUPPORT_TICKET = "support_ticket"


@dataclass(frozen=True)
class SalesRecord:
    """销售记录。

    Attributes:
        id: 销售ID。
        seller_id: 销售员ID，None 表示线上渠道。
        amount: 销售金额。
        occurred_at: 发生时间。
        channel: 销售渠道。
    """
    id: str
    seller_id: Optional[str]
    amount: Decimal
    occurred_at: Optional[datetime]
    channel: Channel


@dataclass(frozen=True)
class CommissionRecord:
    """提成记录，在销售发生时创建。

    Attributes:
        id: 提成记录ID。
        seller_id: 获得提成的销售员ID。
        sale_id: 关联的销售ID。
        sale_amount: 销售金额。
        commission_rate: 提成率（0-100）。
        commission_amount: 提成金额 = sale_amount × commission_rate / 100。
        occurred_at: 发生时间。
        seller_name: 销售员姓名（冗余存储，便于展示）。
    """
    id: str
    seller_id: str
    sale_id: str
    sale_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    occurred_at: Optional[datetime]
    seller_name: str = ""


@dataclass(frozen=True)
class HumanSeller:
    """人工销售员"""
    id: str
    name: str
    commission_rate: Decimal = Decimal("0")
    email: str = ""
    active: bool = True

    @property
    def is_online_channel(self) -> bool:
        return False


@dataclass(frozen=True)
class OnlineChannel:
    """线上渠道，作为虚拟销售员参与业绩统计"""
    id: str = ONLINE_CHANNEL_ID
    name: str = ONLINE_CHANNEL_NAME

    @property
    def is_online_channel(self) -> bool:
        return True

    @property
    def commission_rate(self) -> Decimal:
        return Decimal("0")

    @property
    def active(self) -> bool:
        return True


Seller = Union[HumanSeller, OnlineChannel]


@dataclass(frozen=True)
class PerformanceSummary:
    """单个销售员在某统计周期内的业绩汇总"""
    seller_id: str
    seller_name: str
    is_online_channel: bool
    total_sales: int
    total_revenue: Decimal
    total_commissions: Decimal
    average_order_value: Decimal
    period: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seller_id": self.seller_id,
            "seller_name": self.seller_name,
            "is_online_channel": self.is_online_channel,
            "total_sales": self.total_sales,
            "total_revenue": float(self.total_revenue),
            "total_commissions": float(self.total_commissions),
            "average_order_value": float(self.average_order_value),
            "period": self.period,
        }


@dataclass(frozen=True)
class NumberingSequence:
    """文档编号序列。

    current_number 在 [min_number, max_number] 内单调递增，
    超出上限是错误，不会回绕。

    Attributes:
        id: 序列ID。
        document_type: 文档类型。
        prefix: 编号前缀（仅字母和数字）。
        current_number: 下一个将要分配的编号。
        min_number: 编号下限。
        max_number: 编号上限。
        active: 是否启用。
    """
    id: str
    document_type: DocumentType
    prefix: str
    current_number: int
    min_number: int = 1
    max_number: int = 999999
    active: bool = True
