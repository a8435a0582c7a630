"""销售提成计算。

门店销售发生时，按销售员当前的提成率生成一条不可修改的提成记录。
线上渠道不产生提成。
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from .errors import ValidationError
from .models import (
    CommissionRecord, HumanSeller, SalesRecord, Seller, to_decimal,
)


def compute_commission_amount(sale_amount: Any, rate: Any) -> Decimal:
    """计算提成金额 = 销售金额 × 提成率 / 100。

    Args:
        sale_amount: 销售金额，不能为负。
        rate: 提成率，范围 0-100。

    Returns:
        提成金额（不做舍入）。

    Raises:
        ValidationError: 提成率超出范围或销售金额为负。
    """
    amount = to_decimal(sale_amount)
    rate = to_decimal(rate)
    if rate < 0 or rate > 100:
        raise ValidationError(
            f"Commission rate must be between 0 and 100, got {rate}"
        )
    if amount < 0:
        raise ValidationError(
            f"Sale amount must not be negative, got {amount}"
        )
    return amount * rate / Decimal("100")


def build_commission(seller: Seller, sale: SalesRecord,
                     commission_id: Optional[str] = None,
                     occurred_at: Optional[datetime] = None
                     ) -> CommissionRecord:
    """为销售员的一笔销售生成提成记录。

    Args:
        seller: 获得提成的人工销售员。
        sale: 销售记录。
        commission_id: 提成记录ID，默认生成 UUID。
        occurred_at: 提成时间，默认取销售发生时间。

    Raises:
        ValidationError: seller 不是人工销售员，或金额/提成率不合法。
    """
    if not isinstance(seller, HumanSeller):
        raise ValidationError("The online channel does not earn commissions")

    rate = to_decimal(seller.commission_rate)
    return CommissionRecord(
        id=commission_id or str(uuid.uuid4()),
        seller_id=seller.id,
        sale_id=sale.id,
        sale_amount=to_decimal(sale.amount),
        commission_rate=rate,
        commission_amount=compute_commission_amount(sale.amount, rate),
        occurred_at=occurred_at or sale.occurred_at,
        seller_name=seller.name,
    )
