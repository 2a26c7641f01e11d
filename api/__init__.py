# -*- coding: utf-8 -*-
"""
AWS 服务 API 客户端
"""
