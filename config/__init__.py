# -*- coding: utf-8 -*-
"""
运行配置加载与验证
"""
