# -*- coding: utf-8 -*-
"""
内存缓存
"""
