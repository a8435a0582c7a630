"""业务记录仓库 —— 核心业务数据的数据访问层。

管理销售记录、提成记录和文档编号序列。
仓库对外返回 sales.models 中的值对象，供纯计算函数直接使用。

时间统一以本地时间（naive）入库：带时区的时间先转换为本地时间。
"""
from typing import Optional, List, Dict, Any, Tuple, Union
from datetime import datetime
from sqlalchemy import update
from sqlalchemy.orm import Session
from loguru import logger

from config.settings import settings
from sales import numbering
from sales.errors import (
    AllocationConflictError, NotFoundError, ValidationError,
)
from sales.models import (
    Channel, CommissionRecord, DocumentType, NumberingSequence,
    SalesRecord, to_decimal,
)
from sales.periods import parse_timestamp

from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import Commission, DocumentNumbering, Sale, new_id


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class SaleRepository(BaseCRUD):
    """销售记录 仓库。

    销售记录创建后不修改。
    """

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    @staticmethod
    def to_value(sale: Sale) -> SalesRecord:
        return SalesRecord(
            id=sale.id,
            seller_id=sale.seller_id,
            amount=to_decimal(sale.total),
            occurred_at=sale.occurred_at,
            channel=Channel(sale.channel),
        )

    def save(self, tenant_id: str, sale_data: Dict[str, Any],
             session: Optional[Session] = None) -> SalesRecord:
        """保存销售记录。

        Args:
            tenant_id: 所属租户。
            sale_data: 销售数据字典，支持以下键：
                - amount: 销售金额（必填，不能为负）
                - channel: online / in_person（"pos" 视为 in_person，必填）
                - seller_id: 销售员ID（可选）
                - customer: 顾客名称（可选）
                - occurred_at: 销售时间，datetime 或 ISO 字符串（可选，默认当前时间）
                - id: 销售ID（可选）

        Returns:
            保存后的 SalesRecord。

        Raises:
            ValidationError: 渠道无效、金额为负或时间格式无效。
        """
        try:
            channel = Channel(sale_data.get("channel"))
        except ValueError:
            raise ValidationError(
                f"Invalid sales channel: {sale_data.get('channel')!r}"
            )

        amount = to_decimal(sale_data.get("amount"))
        if amount < 0:
            raise ValidationError(f"Sale amount must not be negative: {amount}")

        occurred_at = datetime.now()
        if sale_data.get("occurred_at") is not None:
            occurred_at = parse_timestamp(sale_data["occurred_at"])
            if occurred_at is None:
                raise ValidationError(
                    f"Invalid timestamp: {sale_data['occurred_at']!r}"
                )

        def _do(sess):
            sale = Sale(
                id=sale_data.get("id") or new_id(),
                tenant_id=tenant_id,
                seller_id=sale_data.get("seller_id"),
                total=amount,
                channel=channel.value,
                customer=sale_data.get("customer"),
                occurred_at=_to_local_naive(occurred_at),
            )
            sess.add(sale)
            sess.flush()
            return self.to_value(sale)

        if session:
            return _do(session)

        with self._get_session() as sess:
            record = _do(sess)
            sess.commit()
            return record

    def get_since(self, tenant_id: str, cutoff: Optional[datetime] = None,
                  session: Optional[Session] = None) -> List[SalesRecord]:
        """获取租户在截止时间之后（含）的销售记录。

        Args:
            tenant_id: 租户ID。
            cutoff: 截止时间，None 表示全部。

        Returns:
            按时间排序的 SalesRecord 列表。
        """
        def _query(sess):
            query = sess.query(Sale).filter(Sale.tenant_id == tenant_id)
            if cutoff is not None:
                query = query.filter(Sale.occurred_at >= _to_local_naive(cutoff))
            return [
                self.to_value(s) for s in query.order_by(Sale.occurred_at).all()
            ]

        if session:
            return _query(session)

        with self._get_session() as sess:
            return _query(sess)


class CommissionRepository(BaseCRUD):
    """提成记录 仓库。"""

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    @staticmethod
    def to_value(commission: Commission) -> CommissionRecord:
        return CommissionRecord(
            id=commission.id,
            seller_id=commission.seller_id,
            sale_id=commission.sale_id,
            sale_amount=to_decimal(commission.sale_amount),
            commission_rate=to_decimal(commission.commission_rate),
            commission_amount=to_decimal(commission.commission_amount),
            occurred_at=commission.occurred_at,
            seller_name=commission.seller_name or "",
        )

    def save(self, tenant_id: str, record: CommissionRecord,
             session: Optional[Session] = None) -> CommissionRecord:
        """保存提成记录（由 sales.commission.build_commission 生成）。"""
        def _do(sess):
            commission = Commission(
                id=record.id,
                tenant_id=tenant_id,
                seller_id=record.seller_id,
                seller_name=record.seller_name,
                sale_id=record.sale_id,
                sale_amount=record.sale_amount,
                commission_rate=record.commission_rate,
                commission_amount=record.commission_amount,
                occurred_at=_to_local_naive(record.occurred_at or datetime.now()),
            )
            sess.add(commission)
            sess.flush()
            return self.to_value(commission)

        if session:
            return _do(session)

        with self._get_session() as sess:
            saved = _do(sess)
            sess.commit()
            return saved

    def get_since(self, tenant_id: str, cutoff: Optional[datetime] = None,
                  seller_id: Optional[str] = None,
                  session: Optional[Session] = None) -> List[CommissionRecord]:
        """获取租户在截止时间之后（含）的提成记录。

        Args:
            tenant_id: 租户ID。
            cutoff: 截止时间，None 表示全部。
            seller_id: 只返回该销售员的提成（可选）。
        """
        def _query(sess):
            query = sess.query(Commission).filter(
                Commission.tenant_id == tenant_id
            )
            if cutoff is not None:
                query = query.filter(
                    Commission.occurred_at >= _to_local_naive(cutoff)
                )
            if seller_id is not None:
                query = query.filter(Commission.seller_id == seller_id)
            return [
                self.to_value(c)
                for c in query.order_by(Commission.occurred_at).all()
            ]

        if session:
            return _query(session)

        with self._get_session() as sess:
            return _query(sess)


class NumberingRepository(BaseCRUD):
    """文档编号序列 仓库。

    负责序列的持久化，并保证并发分配时不会提交重复编号：
    在事务内以 ``UPDATE ... WHERE current_number = :expected`` 条件更新，
    更新行数为 0 说明被其他分配抢先，重新读取后重试。
    """

    def __init__(self, conn: DatabaseConnection,
                 max_retries: Optional[int] = None) -> None:
        super().__init__(conn)
        if max_retries is None:
            max_retries = settings.numbering_allocation_retries
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.max_retries = max_retries

    @staticmethod
    def to_value(row: DocumentNumbering) -> NumberingSequence:
        return NumberingSequence(
            id=row.id,
            document_type=DocumentType(row.document_type),
            prefix=row.prefix,
            current_number=row.current_number,
            min_number=row.min_number,
            max_number=row.max_number,
            active=bool(row.active),
        )

    def _find(self, sess: Session, tenant_id: str,
              document_type: DocumentType) -> DocumentNumbering:
        row = sess.query(DocumentNumbering).filter(
            DocumentNumbering.tenant_id == tenant_id,
            DocumentNumbering.document_type == document_type.value,
        ).first()
        if row is None:
            raise NotFoundError(
                f"No numbering sequence for {document_type.value} "
                f"in tenant {tenant_id}"
            )
        return row

    def create(self, tenant_id: str,
               document_type: Union[DocumentType, str], prefix: str,
               min_number: int = 1, max_number: int = 999999,
               start_number: Optional[int] = None) -> NumberingSequence:
        """创建编号序列。

        Raises:
            ValidationError: 参数不合法（见 sales.numbering.create_sequence）。
        """
        sequence = numbering.create_sequence(
            document_type, prefix, min_number, max_number, start_number
        )
        with self._get_session() as session:
            row = DocumentNumbering(
                id=sequence.id,
                tenant_id=tenant_id,
                document_type=sequence.document_type.value,
                prefix=sequence.prefix,
                current_number=sequence.current_number,
                min_number=sequence.min_number,
                max_number=sequence.max_number,
                active=sequence.active,
            )
            session.add(row)
            session.commit()
        logger.info(
            f"Created numbering {sequence.document_type.value} "
            f"({sequence.prefix}) for tenant {tenant_id}"
        )
        return sequence

    def get(self, tenant_id: str,
            document_type: Union[DocumentType, str]) -> NumberingSequence:
        """获取编号序列，不存在时抛出 NotFoundError。"""
        doc_type = numbering.parse_document_type(document_type)
        with self._get_session() as session:
            return self.to_value(self._find(session, tenant_id, doc_type))

    def list_for_tenant(self, tenant_id: str) -> List[NumberingSequence]:
        """获取租户的全部编号序列"""
        rows = self.get_all(DocumentNumbering, filters={"tenant_id": tenant_id})
        return [self.to_value(r) for r in rows]

    def set_active(self, tenant_id: str,
                   document_type: Union[DocumentType, str],
                   active: bool) -> NumberingSequence:
        """启用或停用编号序列"""
        doc_type = numbering.parse_document_type(document_type)
        with self._get_session() as session:
            row = self._find(session, tenant_id, doc_type)
            sequence = self.to_value(row)
            sequence = (
                numbering.activate(sequence) if active
                else numbering.deactivate(sequence)
            )
            row.active = sequence.active
            session.commit()
            return sequence

    def allocate(self, tenant_id: str,
                 document_type: Union[DocumentType, str]
                 ) -> Tuple[str, NumberingSequence]:
        """分配下一个编号并持久化推进后的计数。

        Returns:
            (格式化编号, 推进后的序列)。

        Raises:
            NotFoundError: 序列不存在。
            InactiveSequenceError / RangeExceededError: 见 sales.numbering.allocate。
            AllocationConflictError: 并发冲突且重试次数耗尽。
        """
        doc_type = numbering.parse_document_type(document_type)

        for attempt in range(1, self.max_retries + 1):
            with self._get_session() as session:
                sequence = self.to_value(
                    self._find(session, tenant_id, doc_type)
                )
                formatted, advanced = numbering.allocate(sequence)

                result = session.execute(
                    update(DocumentNumbering)
                    .where(
                        DocumentNumbering.id == sequence.id,
                        DocumentNumbering.current_number == sequence.current_number,
                    )
                    .values(
                        current_number=advanced.current_number,
                        updated_at=datetime.now(),
                    )
                )
                if result.rowcount == 1:
                    session.commit()
                    return formatted, advanced

                session.rollback()
                logger.warning(
                    f"Numbering conflict on {sequence.id} "
                    f"(attempt {attempt}/{self.max_retries})"
                )

        raise AllocationConflictError(
            f"Could not allocate {doc_type.value} number for tenant "
            f"{tenant_id} after {self.max_retries} attempts"
        )
