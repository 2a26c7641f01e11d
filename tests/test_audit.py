# -*- coding: utf-8 -*-

from botocore.exceptions import NoRegionError, ProfileNotFound

import provider.discovery.region_provider as region_provider_module
from collector.audit import region_provider_for, run_audit
from collector.quota_result import ErrorKind, NotificationStatus, RunReport, UnitError
from config.loader import RunConfiguration
from provider.discovery import EC2RegionProvider, StaticRegionProvider
from tests.fakes import FakeCatalogBuilder, FakeNotifier, enumeration_error, make_breached, resolution_error


class FailingRegionProvider(StaticRegionProvider):
    def get_regions(self):
        raise enumeration_error('us-east-1')


class BrokenRegionProvider(StaticRegionProvider):
    def get_regions(self):
        raise NoRegionError()


def audit(services_by_region, notifier=None, **config_values):
    builders = {region: FakeCatalogBuilder(region, services) for region, services in services_by_region.items()}
    config = RunConfiguration(regions=tuple(builders), **config_values)
    return run_audit(
        config,
        notifier=notifier,
        region_provider=StaticRegionProvider(config.regions),
        builder_factory=lambda region: builders[region],
    )


def test_run_audit_reports_breaches():
    report = audit({
        'us-east-1': {'ec2': {'L-1': 90, 'L-2': 10}, 'lambda': {'L-2ACBD22F': 76}},
        'eu-west-1': {'ec2': {'L-1': 50}},
    })

    assert sorted((b.region, b.quota_code) for b in report.breached) == [
        ('us-east-1', 'L-1'), ('us-east-1', 'L-2ACBD22F'),
    ]
    assert report.quotas_scanned == 4
    assert report.services_scanned == 3
    assert report.regions == ['us-east-1', 'eu-west-1']
    assert report.finished_at is not None
    assert report.exit_code() == 1


def test_run_audit_ignored_codes():
    report = audit({'us-east-1': {'ec2': {'L-1': 90}}}, ignored_quota_codes=frozenset({'L-1'}))
    assert report.breached == []
    assert report.exit_code() == 0


def test_run_audit_partial_failures():
    report = audit({
        'us-east-1': {
            'ec2': {'L-1': 10, 'L-2': resolution_error('L-2'), 'L-3': None},
            'lambda': enumeration_error('us-east-1', 'lambda'),
        },
    })

    assert report.breached == []
    assert [q.quota_code for q in report.unresolved] == ['L-2']
    assert report.unsupported_count == 1
    assert len(report.errors_of(ErrorKind.ENUMERATION)) == 1
    assert report.exit_code() == 3

    summary = report.summary()
    assert summary['enumeration_errors'] == 1
    assert summary['unresolved'] == 1
    assert summary['unsupported'] == 1


def test_run_audit_lazy_resolution():
    report = audit({'us-east-1': {'ec2': {'L-1': 90}}}, eager_resolution=False)
    assert [b.quota_code for b in report.breached] == ['L-1']


def test_run_audit_notifications():
    notifier = FakeNotifier(failing={'L-2': 500})
    report = audit({'us-east-1': {'ec2': {'L-1': 90, 'L-2': 95, 'L-3': 10}}}, notifier=notifier)

    assert report.notifications_enabled
    assert sorted(q.quota_code for q in notifier.sent) == ['L-1', 'L-2']
    statuses = {n.quota_code: n.status for n in report.notifications}
    assert statuses == {'L-1': NotificationStatus.SENT, 'L-2': NotificationStatus.FAILED}
    assert report.summary()['notification_errors'] == 1


def test_run_audit_notify_resolved():
    notifier = FakeNotifier()
    report = audit({'us-east-1': {'ec2': {'L-1': 90, 'L-3': 10}}}, notifier=notifier, notify_resolved=True)

    assert [r.quota_code for r in report.recovered] == ['L-3']
    assert sorted(n.action for n in report.notifications) == ['resolve', 'trigger']


def test_run_audit_without_notifier():
    report = audit({'us-east-1': {'ec2': {'L-1': 90}}})
    assert not report.notifications_enabled
    assert report.notifications == []


def test_run_audit_region_listing_failure():
    report = run_audit(RunConfiguration(all_regions=True), region_provider=FailingRegionProvider(),
                       builder_factory=lambda region: None)

    assert report.quotas_scanned == 0
    assert len(report.unit_errors) == 1
    assert report.exit_code() == 3


def test_region_provider_for():
    assert isinstance(region_provider_for(RunConfiguration()), StaticRegionProvider)
    assert isinstance(region_provider_for(RunConfiguration(all_regions=True)), EC2RegionProvider)


def test_exit_code_clean():
    assert RunReport(threshold=75).exit_code() == 0


def test_exit_code_breach_wins_over_failures():
    report = RunReport(threshold=75, breached=[make_breached('L-1', 90)],
                       unit_errors=[UnitError(ErrorKind.ENUMERATION, 'us-east-1', 'ec2', 'denied')])
    assert report.exit_code() == 1


def test_identifier_errors_are_partial_failures():
    report = RunReport(threshold=75, unit_errors=[UnitError(ErrorKind.IDENTIFIER, 'us-east-1', 'ec2', 'bad arn')])
    assert report.summary()['identifier_errors'] == 1
    assert report.exit_code() == 3


def test_run_audit_region_provider_unexpected_error():
    report = run_audit(RunConfiguration(), region_provider=BrokenRegionProvider(),
                       builder_factory=lambda region: None)

    assert report.quotas_scanned == 0
    assert [e.kind for e in report.unit_errors] == [ErrorKind.ENUMERATION]
    assert report.finished_at is not None
    assert report.exit_code() == 3


def test_run_audit_missing_profile(monkeypatch):
    def missing_profile(region, profile, retry_policy):
        raise ProfileNotFound(profile=profile)

    monkeypatch.setattr(region_provider_module, 'EC2Client', missing_profile)
    config = RunConfiguration(all_regions=True, aws_profile='missing')

    report = run_audit(config, builder_factory=lambda region: None)

    assert len(report.unit_errors) == 1
    error = report.unit_errors[0]
    assert error.kind == ErrorKind.ENUMERATION
    assert error.region == 'us-east-1'
    assert 'missing' in error.message
    assert report.exit_code() == 3
