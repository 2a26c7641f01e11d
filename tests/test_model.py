# -*- coding: utf-8 -*-

import threading

import pytest

from quota.exceptions import ArnFormatError, ResolutionError
from quota.model import Quota, ResolutionState, UsageMetric
from tests.fakes import FakeResolver, make_quota, quota_arn


def test_usage_metric_from_api():
    metric = UsageMetric.from_api({
        'MetricNamespace': 'AWS/Usage',
        'MetricName': 'ResourceCount',
        'MetricDimensions': {'Class': 'Standard/OnDemand', 'Resource': 'vCPU', 'Service': 'EC2', 'Type': 'Resource'},
        'MetricStatisticRecommendation': 'Maximum',
    })
    assert metric.namespace == 'AWS/Usage'
    assert metric.metric_name == 'ResourceCount'
    assert metric.dimensions['Resource'] == 'vCPU'
    assert metric.statistic == 'Maximum'


@pytest.mark.parametrize("usage_metric", [
    None,
    {},
    {'MetricNamespace': 'AWS/Usage'},
    {'MetricName': 'ResourceCount'},
])
def test_usage_metric_from_api_incomplete(usage_metric):
    assert UsageMetric.from_api(usage_metric) is None


def test_usage_metric_default_statistic():
    metric = UsageMetric.from_api({'MetricNamespace': 'AWS/Usage', 'MetricName': 'CallCount'})
    assert metric.statistic == 'Maximum'
    assert metric.dimensions == {}


def test_quota_fields_from_arn():
    quota = Quota(quota_arn('ec2', 'L-1216C47A', 'ap-southeast-1'), 'Running On-Demand Standard instances')
    assert quota.region == 'ap-southeast-1'
    assert quota.account_id == '123456789012'
    assert quota.service_code == 'ec2'
    assert quota.quota_code == 'L-1216C47A'
    assert quota.state == ResolutionState.UNRESOLVED
    assert quota.utilization is None


def test_quota_invalid_arn():
    with pytest.raises(ArnFormatError):
        Quota('arn:aws:servicequotas:us-east-1:123456789012:ec2', 'broken')


def test_quota_without_resolver_is_unsupported():
    quota = Quota(quota_arn('ec2', 'L-1'), 'quota')
    assert quota.resolve_utilization() is None
    assert quota.state == ResolutionState.UNSUPPORTED
    assert quota.error is None


def test_resolve_utilization():
    quota = make_quota('L-1', 42)
    assert quota.resolve_utilization() == 42
    assert quota.utilization == 42
    assert quota.state == ResolutionState.RESOLVED


def test_resolve_utilization_computes_once():
    resolver = FakeResolver({'L-1': 10})
    quota = make_quota('L-1', resolver=resolver)
    assert quota.resolve_utilization() == 10
    assert quota.resolve_utilization() == 10
    assert resolver.calls == ['L-1']


def test_concurrent_resolution_computes_once():
    resolver = FakeResolver({'L-1': 88}, delay=0.05)
    quota = make_quota('L-1', resolver=resolver)
    barrier = threading.Barrier(8)
    results = []
    results_lock = threading.Lock()

    def worker():
        barrier.wait()
        value = quota.resolve_utilization()
        with results_lock:
            results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert resolver.calls == ['L-1']
    assert results == [88] * 8


def test_resolution_error_marks_failed():
    error = ResolutionError('L-1', 'ThrottlingException')
    resolver = FakeResolver({'L-1': error})
    quota = make_quota('L-1', resolver=resolver)

    assert quota.resolve_utilization() is None
    assert quota.state == ResolutionState.FAILED
    assert quota.error is error

    # 失败结果同样只计算一次
    assert quota.resolve_utilization() is None
    assert resolver.calls == ['L-1']


def test_unexpected_error_is_wrapped():
    quota = make_quota('L-1', resolver=FakeResolver({'L-1': RuntimeError('boom')}))
    assert quota.resolve_utilization() is None
    assert quota.state == ResolutionState.FAILED
    assert isinstance(quota.error, ResolutionError)
    assert 'boom' in str(quota.error)


def test_interrupted_resolution_releases_waiters():
    class Interrupted(BaseException):
        pass

    def compute(quota):
        raise Interrupted()

    quota = make_quota('L-1')

    with pytest.raises(Interrupted):
        quota.memoize(compute)

    # 已完成的 Future 不会让后续调用者阻塞
    assert quota.memoize(compute) is None
    assert quota.state == ResolutionState.FAILED
    assert isinstance(quota.error, ResolutionError)
