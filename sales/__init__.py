"""销售核心 —— 业绩汇总、提成计算与文档编号。

本包内的计算都是纯函数，不做 I/O；持久化由 database 模块负责。
"""
