# -*- coding: utf-8 -*-
"""
CloudWatch 查询模块

功能：
- 使用 SERVICE_QUOTA() 表达式查询配额使用百分比
- 查询窗口对齐到整点，并预留聚合延迟
"""
