"""销售业绩汇总。

按统计周期过滤销售和提成记录，为每个销售员（含虚拟的线上渠道）
计算业绩汇总。纯函数，无副作用，不抛异常。

归属规则：
- 线上渠道认领所有 online 渠道的销售；
- 每个人工销售员认领所有 in_person 渠道的销售（销售记录没有可靠的
  销售员归属，这是已知的局限）；
- 提成按 seller_id 精确匹配。
"""
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Union

from loguru import logger

from .models import (
    Channel, CommissionRecord, OnlineChannel, PerformanceSummary,
    Period, SalesRecord, Seller, to_decimal,
)
from .periods import occurred_since, period_cutoff


def _channel_of(sale: SalesRecord) -> Optional[Channel]:
    try:
        return Channel(sale.channel)
    except ValueError:
        return None


def _claimed_sales(seller: Seller,
                   sales: Iterable[SalesRecord]) -> List[SalesRecord]:
    wanted = (
        Channel.ONLINE if isinstance(seller, OnlineChannel)
        else Channel.IN_PERSON
    )
    return [s for s in sales if _channel_of(s) is wanted]


def summarize_seller(seller: Seller,
                     sales: Sequence[SalesRecord],
                     commissions: Sequence[CommissionRecord],
                     period: Period) -> PerformanceSummary:
    """计算单个销售员的业绩汇总（输入应已按周期过滤）。"""
    seller_sales = _claimed_sales(seller, sales)
    seller_commissions = [c for c in commissions if c.seller_id == seller.id]

    total_sales = len(seller_sales)
    total_revenue = sum(
        (to_decimal(s.amount) for s in seller_sales), Decimal("0")
    )
    total_commissions = sum(
        (to_decimal(c.commission_amount) for c in seller_commissions),
        Decimal("0")
    )
    average_order_value = (
        total_revenue / total_sales if total_sales else Decimal("0")
    )

    return PerformanceSummary(
        seller_id=seller.id,
        seller_name=seller.name,
        is_online_channel=seller.is_online_channel,
        total_sales=total_sales,
        total_revenue=total_revenue,
        total_commissions=total_commissions,
        average_order_value=average_order_value,
        period=period.value,
    )


def compute_performance(sellers: Sequence[Seller],
                        sales: Iterable[SalesRecord],
                        commissions: Iterable[CommissionRecord],
                        period: Union[Period, str],
                        now: datetime,
                        online_channel: Optional[OnlineChannel] = None
                        ) -> List[PerformanceSummary]:
    """计算统计周期内每个销售员的业绩。

    Args:
        sellers: 销售员名单（可为空）。
        sales: 销售记录。
        commissions: 提成记录。
        period: 统计周期 today/week/month，无法识别时按 today 处理。
        now: 参考时间（由调用方注入，保证结果可复现）。
        online_channel: 虚拟线上渠道，默认使用 OnlineChannel()。

    Returns:
        业绩汇总列表，顺序与 sellers 一致，线上渠道始终追加在最后。
        每条汇总的 period 是解析后的周期值，例如传入 "fortnight"
        时返回 "today"，而不是原样回显。
    """
    resolved = Period.parse(period)
    if not isinstance(period, Period) and resolved.value != period:
        logger.debug(f"Unknown period {period!r}, falling back to 'today'")

    cutoff = period_cutoff(resolved, now)
    period_sales = [s for s in sales if occurred_since(s.occurred_at, cutoff)]
    period_commissions = [
        c for c in commissions if occurred_since(c.occurred_at, cutoff)
    ]

    # 不做去重：名单里已有线上渠道时也会再追加一个
    all_sellers = list(sellers) + [online_channel or OnlineChannel()]

    return [
        summarize_seller(seller, period_sales, period_commissions, resolved)
        for seller in all_sellers
    ]
