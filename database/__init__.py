"""数据库模块 —— 销售核心的存储协作方。

对外只暴露 DatabaseManager 门面，子仓库通过其属性访问。
"""
from .manager import DatabaseManager

__all__ = ["DatabaseManager"]
