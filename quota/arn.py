# -*- coding: utf-8 -*-
"""
配额 ARN 解析模块

功能：
- 将 Service Quotas 返回的配额 ARN 解析为结构化字段
- 格式：arn:<partition>:servicequotas:<region>:<account_id>:<service_code>/<quota_code>
"""

from dataclasses import dataclass

from quota.exceptions import ArnFormatError

# 前缀部分的字段数：arn, partition, namespace, region, account_id, service_code
ARN_PREFIX_FIELDS = 6


@dataclass(frozen=True)
class ParsedArn:
    """解析后的配额 ARN"""
    region: str
    account_id: str
    service_code: str
    quota_code: str


def parse_arn(arn: str) -> ParsedArn:
    """
    解析配额 ARN

    Args:
        arn: 配额 ARN，如 "arn:aws:servicequotas:us-east-1:123456789012:ec2/L-1216C47A"

    Returns:
        ParsedArn 对象

    Raises:
        ArnFormatError: 缺少 '/' 或前缀不是 6 个冒号分隔的字段
    """
    if not isinstance(arn, str):
        raise ArnFormatError(str(arn))

    prefix, sep, quota_code = arn.rpartition('/')
    if not sep:
        raise ArnFormatError(arn)

    fields = prefix.split(':')
    if len(fields) != ARN_PREFIX_FIELDS:
        raise ArnFormatError(arn)

    return ParsedArn(
        region=fields[3],
        account_id=fields[4],
        service_code=fields[5],
        quota_code=quota_code,
    )
