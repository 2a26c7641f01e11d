# -*- coding: utf-8 -*-

import pytest


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """避免测试读取本机 AWS 凭证"""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    monkeypatch.delenv('AWS_PROFILE', raising=False)
    monkeypatch.delenv('PAGERDUTY_ROUTING_KEY', raising=False)
