"""
核心业务模块
"""
