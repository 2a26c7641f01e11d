# -*- coding: utf-8 -*-
"""
配额审计异常定义模块

功能：
- 定义审计流程中的错误分类
- 所有错误都在最小单元边界被捕获，不会中断整个审计
"""

from typing import Optional


class QuotaMonitorError(Exception):
    """配额审计基础异常"""


class ArnFormatError(QuotaMonitorError):
    """配额 ARN 格式错误（跳过该条记录）"""

    def __init__(self, arn: str):
        self.arn = arn
        super().__init__(f"ArnFormatError: {arn}")


# 与分类名称保持一致的别名
IdentifierFormatError = ArnFormatError


class EnumerationError(QuotaMonitorError):
    """服务或配额列举失败（跳过该单元）"""

    def __init__(self, region: str, service_code: Optional[str], message: str):
        self.region = region
        self.service_code = service_code
        self.message = message
        target = f"{region}/{service_code}" if service_code else region
        super().__init__(f"列举失败 [{target}]: {message}")


class ResolutionError(QuotaMonitorError):
    """使用率查询失败（配额保持未解析状态）"""

    def __init__(self, quota_code: str, message: str):
        self.quota_code = quota_code
        self.message = message
        super().__init__(f"使用率查询失败 [{quota_code}]: {message}")


class MissingMetricDataError(ResolutionError):
    """CloudWatch 未返回任何数据点"""

    def __init__(self, quota_code: str):
        super().__init__(quota_code, "MissingMetricData")


class NotificationError(QuotaMonitorError):
    """告警发送失败（收集后在运行结束时汇报）"""

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"告警接口返回错误 statuscode: {status_code}, error: {body}")


class ConfigError(QuotaMonitorError):
    """配置错误"""
