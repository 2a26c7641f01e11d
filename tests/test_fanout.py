# -*- coding: utf-8 -*-

import pytest

from collector.quota_result import ErrorKind
from quota.model import ResolutionState
from scheduler.fanout import FanOutScheduler
from tests.fakes import FakeCatalogBuilder, enumeration_error


def run(builders, parallelism=5, eager=True):
    scheduler = FanOutScheduler(lambda region: builders[region], eager_resolution=eager)
    return scheduler.run(list(builders), parallelism)


def test_collects_all_regions_and_services():
    builders = {
        'us-east-1': FakeCatalogBuilder('us-east-1', {'ec2': {'L-1': 10, 'L-2': 90}, 'lambda': {'L-3': 50}}),
        'eu-west-1': FakeCatalogBuilder('eu-west-1', {'ec2': {'L-1': 20}}),
    }

    catalog = run(builders)

    assert catalog.services_scanned == 3
    assert sorted((q.region, q.quota_code) for q in catalog.quotas) == [
        ('eu-west-1', 'L-1'), ('us-east-1', 'L-1'), ('us-east-1', 'L-2'), ('us-east-1', 'L-3'),
    ]
    assert catalog.errors == []


def test_eager_resolution():
    builders = {'us-east-1': FakeCatalogBuilder('us-east-1', {'ec2': {'L-1': 10}})}

    catalog = run(builders, eager=True)

    assert catalog.quotas[0].state == ResolutionState.RESOLVED
    assert catalog.quotas[0].utilization == 10


def test_lazy_resolution():
    builders = {'us-east-1': FakeCatalogBuilder('us-east-1', {'ec2': {'L-1': 10}})}

    catalog = run(builders, eager=False)

    assert catalog.quotas[0].state == ResolutionState.UNRESOLVED
    assert builders['us-east-1'].resolver.calls == []


def test_one_service_failure_is_isolated():
    builders = {
        'us-east-1': FakeCatalogBuilder('us-east-1', {
            'ec2': {'L-1': 10},
            'lambda': enumeration_error('us-east-1', 'lambda'),
            'iam': {'L-2': 20, 'L-3': 30},
        }),
    }

    catalog = run(builders)

    assert sorted(q.quota_code for q in catalog.quotas) == ['L-1', 'L-2', 'L-3']
    enumeration_errors = catalog.errors_of(ErrorKind.ENUMERATION)
    assert len(enumeration_errors) == 1
    assert enumeration_errors[0].service_code == 'lambda'
    assert enumeration_errors[0].region == 'us-east-1'


def test_unexpected_unit_error_is_isolated():
    builders = {
        'us-east-1': FakeCatalogBuilder('us-east-1', {'ec2': RuntimeError('boom'), 'iam': {'L-2': 20}}),
    }

    catalog = run(builders)

    assert [q.quota_code for q in catalog.quotas] == ['L-2']
    assert len(catalog.errors) == 1
    assert 'boom' in catalog.errors[0].message


def test_region_listing_failure_is_isolated():
    builders = {
        'us-east-1': FakeCatalogBuilder('us-east-1', {}, list_error=enumeration_error('us-east-1')),
        'eu-west-1': FakeCatalogBuilder('eu-west-1', {'ec2': {'L-1': 20}}),
    }

    catalog = run(builders)

    assert [q.region for q in catalog.quotas] == ['eu-west-1']
    assert len(catalog.errors) == 1
    assert catalog.errors[0].region == 'us-east-1'
    assert catalog.errors[0].service_code is None


def test_per_region_parallelism_bound():
    services = {f"svc-{i}": {f"L-{i}": i} for i in range(12)}
    builders = {
        'us-east-1': FakeCatalogBuilder('us-east-1', services, unit_delay=0.02),
        'eu-west-1': FakeCatalogBuilder('eu-west-1', services, unit_delay=0.02),
    }

    catalog = run(builders, parallelism=3)

    assert len(catalog.quotas) == 24
    for builder in builders.values():
        assert 1 <= builder.max_active <= 3


def test_no_regions():
    catalog = FanOutScheduler(lambda region: None).run([], 5)
    assert catalog.quotas == []
    assert catalog.services_scanned == 0


def test_invalid_parallelism():
    with pytest.raises(ValueError):
        FanOutScheduler(lambda region: None).run(['us-east-1'], 0)


def test_regions_run_concurrently():
    services = {f"svc-{i}": {f"L-{i}": i} for i in range(6)}
    builders = {
        'us-east-1': FakeCatalogBuilder('us-east-1', services, unit_delay=0.05),
        'eu-west-1': FakeCatalogBuilder('eu-west-1', services, unit_delay=0.05),
    }

    run(builders, parallelism=2)

    first, second = builders['us-east-1'].intervals, builders['eu-west-1'].intervals
    # 第二个区域的首个单元在第一个区域全部完成之前就已开始
    assert min(start for start, _ in second) < max(end for _, end in first)
    assert any(s1 < e2 and s2 < e1 for s1, e1 in first for s2, e2 in second)
    for builder in builders.values():
        assert 1 <= builder.max_active <= 2
