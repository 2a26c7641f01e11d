# -*- coding: utf-8 -*-

import inspect

import pytest

from config.loader import RunConfiguration, apply_overrides, load_run_config
from config.validator import validate_config
from provider.aws.provider import QuotaCatalogBuilder
from quota.exceptions import ConfigError
from retry.retry import RetryPolicy
from scheduler.fanout import FanOutScheduler


def test_defaults():
    config = RunConfiguration()
    assert config.threshold == 75
    assert config.regions == ('us-east-1',)
    assert config.ignored_quota_codes == frozenset()
    assert config.per_region_parallelism == 5
    assert config.eager_resolution is True
    assert config.notify_resolved is False
    assert validate_config(config) == (True, None)


def test_load_run_config(tmp_path):
    path = tmp_path / 'audit.yaml'
    path.write_text(
        "threshold: 80\n"
        "regions:\n"
        "  - us-east-1\n"
        "  - eu-west-1\n"
        "ignored_quota_codes:\n"
        "  - L-1216C47A\n"
        "per_region_parallelism: 3\n"
        "notify_resolved: true\n",
        encoding='utf-8',
    )

    config = load_run_config(str(path))

    assert config.threshold == 80
    assert config.regions == ('us-east-1', 'eu-west-1')
    assert config.ignored_quota_codes == frozenset({'L-1216C47A'})
    assert config.per_region_parallelism == 3
    assert config.notify_resolved is True
    assert config.max_attempts == 5


def test_load_empty_config(tmp_path):
    path = tmp_path / 'audit.yaml'
    path.write_text('', encoding='utf-8')
    assert load_run_config(str(path)) == RunConfiguration()


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_run_config(str(tmp_path / 'missing.yaml'))


@pytest.mark.parametrize("content", [
    "threshold: [",
    "- a\n- b\n",
    "unknown_field: 1\n",
    "regions: 5\n",
    "regions:\n",
])
def test_load_invalid_config(tmp_path, content):
    path = tmp_path / 'audit.yaml'
    path.write_text(content, encoding='utf-8')
    with pytest.raises(ConfigError):
        load_run_config(str(path))


def test_apply_overrides():
    config = apply_overrides(RunConfiguration(), threshold=90, regions=['eu-west-1'],
                             ignored_quota_codes=['L-1'], aws_profile=None)
    assert config.threshold == 90
    assert config.regions == ('eu-west-1',)
    assert config.ignored_quota_codes == frozenset({'L-1'})
    assert config.aws_profile is None


def test_apply_overrides_keeps_unset():
    base = RunConfiguration(threshold=60)
    assert apply_overrides(base, threshold=None) is base


def test_apply_overrides_unknown_field():
    with pytest.raises(ConfigError):
        apply_overrides(RunConfiguration(), color='blue')


@pytest.mark.parametrize("config", [
    RunConfiguration(threshold=101),
    RunConfiguration(threshold=-1),
    RunConfiguration(threshold=True),
    RunConfiguration(regions=()),
    RunConfiguration(regions=('',)),
    RunConfiguration(ignored_quota_codes=frozenset({''})),
    RunConfiguration(per_region_parallelism=0),
    RunConfiguration(max_attempts=0),
    RunConfiguration(service_cache_ttl=-1),
])
def test_validate_invalid(config):
    is_valid, error_message = validate_config(config)
    assert not is_valid
    assert error_message


def test_validate_all_regions_without_regions():
    assert validate_config(RunConfiguration(regions=(), all_regions=True)) == (True, None)


def test_validate_boundaries():
    assert validate_config(RunConfiguration(threshold=0))[0]
    assert validate_config(RunConfiguration(threshold=100))[0]
    assert validate_config(RunConfiguration(per_region_parallelism=1))[0]


def test_component_defaults_match_run_configuration():
    config = RunConfiguration()
    assert RetryPolicy().max_attempts == config.max_attempts
    assert QuotaCatalogBuilder('us-east-1', client=object()).cache_ttl == config.service_cache_ttl
    run_default = inspect.signature(FanOutScheduler.run).parameters['per_region_parallelism'].default
    assert run_default == config.per_region_parallelism
