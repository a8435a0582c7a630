"""文档编号分配。

编号格式为 ``前缀 + 6位补零的当前编号``，例如 COT000042。

本模块只包含纯函数：不持有状态、不做 I/O。调用方负责持久化
分配后的序列；并发下避免重复编号由存储层保证（见
database.business_repos.NumberingRepository.allocate）。

序列只有两个状态：启用（初始）和停用，通过 activate/deactivate 切换。
"""
import re
import uuid
from dataclasses import replace
from typing import Optional, Tuple, Union

from .errors import (
    InactiveSequenceError, RangeExceededError, ValidationError,
)
from .models import DocumentType, NumberingSequence


NUMBER_WIDTH = 6

_PREFIX_PATTERN = re.compile(r"[A-Za-z0-9]*")


def _validate_prefix(prefix: str) -> None:
    if not isinstance(prefix, str) or not _PREFIX_PATTERN.fullmatch(prefix):
        raise ValidationError(
            f"Prefix may only contain letters and digits: {prefix!r}"
        )


def format_number(prefix: str, number: int) -> str:
    """渲染编号字符串，超过6位时不截断。"""
    return f"{prefix}{str(number).zfill(NUMBER_WIDTH)}"


def preview_next(sequence: NumberingSequence) -> str:
    """预览下一个编号，不修改序列。

    Raises:
        ValidationError: current_number 为负或前缀含非法字符。
    """
    _validate_prefix(sequence.prefix)
    if sequence.current_number < 0:
        raise ValidationError(
            f"Current number must not be negative: {sequence.current_number}"
        )
    return format_number(sequence.prefix, sequence.current_number)


def allocate(sequence: NumberingSequence
             ) -> Tuple[str, NumberingSequence]:
    """分配下一个编号并返回推进后的序列。

    Returns:
        (格式化编号, current_number 加 1 后的新序列)。

    Raises:
        InactiveSequenceError: 序列已停用。
        RangeExceededError: current_number 低于下限，或推进后将超出上限。
        ValidationError: 同 preview_next。
    """
    if not sequence.active:
        raise InactiveSequenceError(
            f"Numbering sequence {sequence.id} is inactive"
        )
    if sequence.current_number < sequence.min_number:
        raise RangeExceededError(
            f"Sequence {sequence.id} is below its minimum: "
            f"{sequence.current_number} < {sequence.min_number}"
        )
    if sequence.current_number >= sequence.max_number:
        raise RangeExceededError(
            f"Sequence {sequence.id} is exhausted: "
            f"{sequence.current_number} reached {sequence.max_number}"
        )

    formatted = preview_next(sequence)
    return formatted, replace(
        sequence, current_number=sequence.current_number + 1
    )


def parse_document_type(value: Union[DocumentType, str]) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        raise ValidationError(f"Unknown document type: {value!r}")


def create_sequence(document_type: Union[DocumentType, str],
                    prefix: str,
                    min_number: int = 1,
                    max_number: int = 999999,
                    start_number: Optional[int] = None,
                    sequence_id: Optional[str] = None) -> NumberingSequence:
    """创建新的编号序列（启用状态）。

    Args:
        document_type: 文档类型。
        prefix: 编号前缀，仅字母和数字，会转为大写。
        min_number: 编号下限。
        max_number: 编号上限。
        start_number: 起始编号，默认等于下限。
        sequence_id: 序列ID，默认生成 UUID。

    Raises:
        ValidationError: 参数不合法。
    """
    doc_type = parse_document_type(document_type)
    _validate_prefix(prefix)
    if start_number is None:
        start_number = min_number

    if min_number < 0:
        raise ValidationError(f"Minimum number must not be negative: {min_number}")
    if min_number > max_number:
        raise ValidationError(
            f"Minimum number {min_number} is greater than maximum {max_number}"
        )
    if not min_number <= start_number <= max_number:
        raise ValidationError(
            f"Start number {start_number} is outside "
            f"[{min_number}, {max_number}]"
        )

    return NumberingSequence(
        id=sequence_id or str(uuid.uuid4()),
        document_type=doc_type,
        prefix=prefix.upper(),
        current_number=start_number,
        min_number=min_number,
        max_number=max_number,
        active=True,
    )


def activate(sequence: NumberingSequence) -> NumberingSequence:
    return replace(sequence, active=True)


def deactivate(sequence: NumberingSequence) -> NumberingSequence:
    return replace(sequence, active=False)
