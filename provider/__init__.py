# -*- coding: utf-8 -*-
"""
配额数据来源（AWS API 与区域发现）
"""
