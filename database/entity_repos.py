"""实体仓库 —— 基础实体的数据访问层。

管理租户和销售团队成员。所有查询都按租户隔离。

每个仓库继承 BaseCRUD 获得通用能力，并添加领域特定的查询方法。
"""
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from loguru import logger

from sales.errors import NotFoundError, ValidationError
from sales.models import HumanSeller, OnlineChannel, Seller as SellerValue, to_decimal

from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import Seller, Tenant, new_id


class TenantRepository(BaseCRUD):
    """租户 仓库。"""

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    def create(self, name: str, tenant_id: Optional[str] = None,
               plan: str = "basic",
               tenant_settings: Optional[Dict[str, Any]] = None) -> Tenant:
        """创建租户。

        Args:
            name: 租户名称。
            tenant_id: 租户ID（可选，默认生成 UUID）。
            plan: 订阅套餐。
            tenant_settings: 租户级设置。

        Returns:
            Tenant 对象。
        """
        with self._get_session() as session:
            tenant = Tenant(
                id=tenant_id or new_id(), name=name, plan=plan,
                settings=tenant_settings or {}
            )
            session.add(tenant)
            session.commit()
            session.refresh(tenant)
            logger.info(f"Created tenant {tenant.id} ({name})")
            return tenant

    def get(self, tenant_id: str,
            session: Optional[Session] = None) -> Tenant:
        """获取租户，不存在时抛出 NotFoundError。"""
        tenant = self.get_by_id(Tenant, tenant_id, session=session)
        if tenant is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    def update_settings(self, tenant_id: str,
                        updates: Dict[str, Any]) -> Dict[str, Any]:
        """合并更新租户级设置。

        Returns:
            更新后的完整设置字典。
        """
        with self._get_session() as session:
            tenant = self.get(tenant_id, session=session)
            # JSON 列需要整体赋值才能被检测到变更
            merged = dict(tenant.settings or {})
            merged.update(updates)
            tenant.settings = merged
            session.commit()
            return merged


class SellerRepository(BaseCRUD):
    """销售团队 仓库。

    管理租户的销售员名单，并把 ORM 对象转换为销售核心使用的
    HumanSeller / OnlineChannel 值对象。
    """

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    @staticmethod
    def to_value(seller: Seller) -> SellerValue:
        """ORM 对象转为销售员变体"""
        if seller.is_online_channel:
            return OnlineChannel(id=seller.id, name=seller.name)
        return HumanSeller(
            id=seller.id,
            name=seller.name,
            commission_rate=to_decimal(seller.commission_rate),
            email=seller.email or "",
            active=bool(seller.active),
        )

    def create(self, tenant_id: str, name: str,
               commission_rate: Any = 5, email: Optional[str] = None,
               is_online_channel: bool = False,
               session: Optional[Session] = None) -> Seller:
        """新增销售员。

        Args:
            tenant_id: 所属租户。
            name: 姓名。
            commission_rate: 提成率 0-100，默认5。
            email: 邮箱（可选）。
            is_online_channel: 是否为线上渠道。

        Raises:
            ValidationError: 提成率超出范围。
        """
        rate = to_decimal(commission_rate)
        if rate < 0 or rate > 100:
            raise ValidationError(
                f"Commission rate must be between 0 and 100, got {rate}"
            )

        def _do(sess):
            seller = Seller(
                tenant_id=tenant_id, name=name, email=email,
                commission_rate=rate, is_online_channel=is_online_channel,
                active=True,
            )
            sess.add(seller)
            sess.flush()
            sess.refresh(seller)
            return seller

        if session:
            return _do(session)

        with self._get_session() as sess:
            seller = _do(sess)
            sess.commit()
            sess.refresh(seller)
            return seller

    def get_roster(self, tenant_id: str, active_only: bool = False,
                   session: Optional[Session] = None) -> List[SellerValue]:
        """获取租户的销售员名单（值对象）。

        Args:
            tenant_id: 租户ID。
            active_only: 是否只返回在职销售员。

        Returns:
            按创建时间排序的销售员列表。
        """
        def _query(sess):
            query = sess.query(Seller).filter(Seller.tenant_id == tenant_id)
            if active_only:
                query = query.filter(Seller.active.is_(True))
            rows = query.order_by(Seller.created_at, Seller.id).all()
            return [self.to_value(s) for s in rows]

        if session:
            return _query(session)

        with self._get_session() as sess:
            return _query(sess)

    def update(self, seller_id: str,
               session: Optional[Session] = None,
               **fields: Any) -> Optional[Seller]:
        """更新销售员信息（姓名、邮箱、提成率、是否在职）。"""
        if "commission_rate" in fields:
            rate = to_decimal(fields["commission_rate"])
            if rate < 0 or rate > 100:
                raise ValidationError(
                    f"Commission rate must be between 0 and 100, got {rate}"
                )
            fields["commission_rate"] = rate
        return self.update_by_id(Seller, seller_id, session=session, **fields)

    def deactivate(self, seller_id: str,
                   session: Optional[Session] = None) -> Optional[Seller]:
        """停用销售员。

        Returns:
            更新后的 Seller 对象，不存在返回 None。
        """
        return self.update_by_id(Seller, seller_id, session=session, active=False)
