# -*- coding: utf-8 -*-
"""
配额数据结构、ARN 解析、阈值判定与异常定义
"""
