"""销售核心异常定义。

所有异常都是本地、同步、不可自动重试的：由调用方决定是提示用户、
调整编号范围后重试，还是重新启用编号序列。
"""


class SalesCoreError(Exception):
    """销售核心异常基类"""


class ValidationError(SalesCoreError, ValueError):
    """纯函数输入不合法（前缀含非法字符、最小值大于最大值等）"""


class RangeExceededError(SalesCoreError):
    """编号分配超出序列配置的范围"""


class InactiveSequenceError(SalesCoreError):
    """在已停用的编号序列上尝试分配编号"""


class AllocationConflictError(SalesCoreError):
    """并发分配冲突，重试次数耗尽后仍未能提交"""


class NotFoundError(SalesCoreError, LookupError):
    """租户、编号序列等记录不存在"""
