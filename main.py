#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Service Quota Monitor 主程序入口

功能：
- utilization：执行一次配额审计，打印超阈值配额并以退出码汇报结果
- serve：启动 Flask HTTP 服务器，定时审计并暴露 /metrics、/health 端点
"""

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

from flask import Flask, jsonify

from cache.cache import MemoryCache
from collector import QuotaCollector, RunReport
from collector.audit import run_audit
from config.loader import RunConfiguration, apply_overrides, load_run_config
from config.validator import validate_config
from notifier import PagerDutyNotifier
from quota.exceptions import ConfigError
from scheduler.scheduler import QuotaScheduler

logger = logging.getLogger('main')

ROUTING_KEY_ENV = 'PAGERDUTY_ROUTING_KEY'
DEFAULT_AUDIT_INTERVAL = 3600  # 1 小时
DEFAULT_PORT = 8000

EXIT_INVALID_CONFIG = 2


def setup_logging(level: str = 'INFO'):
    """配置日志"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # 设置特定模块的日志级别
    for name in ('botocore', 'boto3', 'urllib3', 'httpx', 'httpcore'):
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger('werkzeug').setLevel(logging.WARNING)  # 减少 Flask 日志


def create_app(quota_collector: QuotaCollector, scheduler: Optional[QuotaScheduler] = None) -> Flask:
    """
    创建 Flask 应用

    Args:
        quota_collector: 指标收集器
        scheduler: 定时审计调度器（可选，不提供时 /trigger/audit 不可用）
    """
    app = Flask(__name__)

    @app.route('/metrics')
    def metrics():
        """
        Prometheus metrics 端点

        格式：Prometheus text format
        """
        return quota_collector.get_metrics(), 200, {'Content-Type': quota_collector.content_type}

    @app.route('/health')
    def health():
        """健康检查端点"""
        status = {'status': 'healthy', 'last_audit': quota_collector.get_summary()}
        if scheduler:
            status['scheduler'] = scheduler.get_status()
        return jsonify(status), 200

    @app.route('/trigger/audit', methods=['POST'])
    def trigger_audit():
        """手动触发一次审计（同步执行）"""
        if scheduler is None:
            return jsonify({'success': False, 'error': '调度器未初始化，无法执行审计'}), 503

        if scheduler.busy:
            return jsonify({'success': False, 'error': '审计正在进行中'}), 409

        logger.info("[手动触发] 开始审计...")
        if not scheduler.run_once():
            error = scheduler.get_status().get('last_error') or '审计未执行'
            return jsonify({'success': False, 'error': error}), 500

        return jsonify({
            'success': True,
            'message': '审计完成',
            'summary': quota_collector.get_summary(),
        }), 200

    return app


def _common_arguments() -> argparse.ArgumentParser:
    # 默认值为 SUPPRESS，子命令前后的参数不会互相覆盖
    parser = argparse.ArgumentParser(add_help=False, argument_default=argparse.SUPPRESS)
    parser.add_argument('-t', '--threshold', type=int,
                        help='告警阈值（百分比，默认 75）')
    parser.add_argument('-r', '--regions', nargs='+',
                        help='扫描的区域（默认 us-east-1）')
    parser.add_argument('--all-regions', action='store_true', dest='all_regions',
                        help='通过 EC2 DescribeRegions 扫描全部已启用区域')
    parser.add_argument('-i', '--ignore', nargs='+', dest='ignored_quota_codes',
                        help='忽略的 quota_code')
    parser.add_argument('-c', '--config', dest='config_path',
                        help='YAML 配置文件路径')
    parser.add_argument('-p', '--parallelism', type=int, dest='per_region_parallelism',
                        help='每个区域的并发单元数（默认 5）')
    parser.add_argument('--no-eager', action='store_false', dest='eager_resolution',
                        help='列举配额时不立即解析使用率')
    parser.add_argument('--notify-resolved', action='store_true', dest='notify_resolved',
                        help='为恢复到阈值以下的配额发送 resolve 事件')
    parser.add_argument('--profile', dest='aws_profile',
                        help='AWS profile')
    parser.add_argument('--log-level', dest='log_level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='日志级别（默认 INFO）')
    return parser


def build_parser() -> argparse.ArgumentParser:
    """构建命令行解析器"""
    common = _common_arguments()
    parser = argparse.ArgumentParser(
        prog='service-quota-monitor',
        description='AWS Service Quotas 使用率审计与告警',
        parents=[common],
    )
    subparsers = parser.add_subparsers(dest='command')

    subparsers.add_parser('utilization', parents=[common],
                          help='执行一次审计并列出超阈值配额（默认）')

    serve = subparsers.add_parser('serve', parents=[common],
                                  help='启动 exporter，定时审计并暴露 Prometheus 指标')
    serve.add_argument('--interval', type=int, default=DEFAULT_AUDIT_INTERVAL,
                       help='审计间隔（秒，默认 3600）')
    serve.add_argument('--port', type=int, default=DEFAULT_PORT,
                       help='HTTP 端口（默认 8000）')
    serve.add_argument('--host', default='0.0.0.0',
                       help='HTTP 监听地址')

    return parser


def build_config(args: argparse.Namespace) -> RunConfiguration:
    """
    合并配置文件和命令行参数

    Raises:
        FileNotFoundError: 配置文件不存在
        ConfigError: 配置格式错误
    """
    config_path = getattr(args, 'config_path', None)
    config = load_run_config(config_path) if config_path else RunConfiguration()

    return apply_overrides(
        config,
        threshold=getattr(args, 'threshold', None),
        regions=getattr(args, 'regions', None),
        all_regions=getattr(args, 'all_regions', None),
        ignored_quota_codes=getattr(args, 'ignored_quota_codes', None),
        per_region_parallelism=getattr(args, 'per_region_parallelism', None),
        eager_resolution=getattr(args, 'eager_resolution', None),
        notify_resolved=getattr(args, 'notify_resolved', None),
        aws_profile=getattr(args, 'aws_profile', None),
    )


def build_notifier(environ: Dict[str, str] = None) -> Optional[PagerDutyNotifier]:
    """根据环境变量创建 PagerDuty 告警发送器，未配置 routing key 时返回 None"""
    environ = os.environ if environ is None else environ
    routing_key = environ.get(ROUTING_KEY_ENV)
    if not routing_key:
        logger.info(f"{ROUTING_KEY_ENV} 未设置，告警发送已禁用")
        return None
    return PagerDutyNotifier(routing_key)


def format_breached_table(report: RunReport) -> str:
    """把超阈值配额格式化为纯文本表格"""
    headers = ['REGION', 'ACCOUNT', 'SERVICE', 'QUOTA CODE', 'UTILIZATION', 'NAME']
    rows: List[List[str]] = [
        [b.region, b.account_id, b.service_code, b.quota_code, f"{b.utilization}%", b.name]
        for b in sorted(report.breached, key=lambda b: (-b.utilization, b.region, b.service_code, b.quota_code))
    ]
    if not rows:
        return f"没有使用率超过 {report.threshold}% 的配额"

    widths = [max(len(row[i]) for row in [headers] + rows) for i in range(len(headers))]
    lines = ['  '.join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip()
             for row in [headers] + rows]
    return '\n'.join(lines)


def format_report_summary(report: RunReport) -> str:
    """审计摘要（错误计数）"""
    summary = report.summary()
    lines = [
        f"区域: {', '.join(summary['regions']) or '-'}",
        f"服务: {summary['services_scanned']}  配额: {summary['quotas_scanned']}  "
        f"超阈值: {summary['breached']}  不支持: {summary['unsupported']}",
        f"列举失败: {summary['enumeration_errors']}  ARN 格式错误: {summary['identifier_errors']}  "
        f"使用率未解析: {summary['unresolved']}",
    ]
    if summary['notifications_enabled']:
        lines.append(f"告警发送: {summary['notifications_sent']}  告警失败: {summary['notification_errors']}")
    else:
        lines.append("告警发送: 已禁用")
    return '\n'.join(lines)


def cmd_utilization(config: RunConfiguration, notifier: Optional[PagerDutyNotifier]) -> int:
    """执行一次审计并打印结果"""
    report = run_audit(config, notifier=notifier)

    print(format_breached_table(report))
    print()
    print(format_report_summary(report))

    return report.exit_code()


def cmd_serve(config: RunConfiguration, notifier: Optional[PagerDutyNotifier],
              interval: int, host: str, port: int) -> int:
    """启动 exporter"""
    quota_collector = QuotaCollector()
    cache = MemoryCache()

    def audit():
        report = run_audit(config, notifier=notifier, cache=cache)
        quota_collector.update(report)

    scheduler = QuotaScheduler(audit_func=audit, interval=interval)
    scheduler.start()
    logger.info("定时任务已启动，将在后台自动审计")

    app = create_app(quota_collector, scheduler)

    logger.info(f"Starting HTTP server on port {port}")
    print(f"\n{'=' * 60}")
    print("Exporter 已启动")
    print(f"访问 http://localhost:{port}/metrics 查看指标")
    print(f"访问 http://localhost:{port}/health 查看健康状态")
    print(f"{'=' * 60}\n")
    try:
        app.run(host=host, port=port, debug=False)
    finally:
        scheduler.stop()
    return 0


def main(argv: List[str] = None) -> int:
    """
    主函数

    Returns:
        进程退出码（0 正常，1 存在超阈值配额，2 配置错误，3 部分失败）
    """
    args = build_parser().parse_args(argv)
    setup_logging(getattr(args, 'log_level', 'INFO'))

    try:
        config = build_config(args)
    except (FileNotFoundError, ConfigError) as e:
        logger.error(f"加载配置失败: {e}")
        return EXIT_INVALID_CONFIG

    is_valid, error_message = validate_config(config)
    if not is_valid:
        logger.error(f"配置无效: {error_message}")
        return EXIT_INVALID_CONFIG

    notifier = build_notifier()
    try:
        if args.command == 'serve':
            return cmd_serve(config, notifier, args.interval, args.host, args.port)
        return cmd_utilization(config, notifier)
    finally:
        if notifier is not None:
            notifier.close()


if __name__ == '__main__':
    sys.exit(main())
