# -*- coding: utf-8 -*-
"""
AWS 客户端重试策略
"""
