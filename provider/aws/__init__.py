# -*- coding: utf-8 -*-
"""
AWS Provider 模块

功能：
- 创建带重试策略的 boto3 客户端
- 通过 Service Quotas API 列举服务和配额
- 按配额选择使用率解析方式（CloudWatch 或专用 API）
"""
