# -*- coding: utf-8 -*-
"""
EC2、Lambda 等服务的 API 封装
"""
