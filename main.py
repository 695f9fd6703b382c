#!/usr/bin/env python3
"""
Main entry point for Quality Center test-set automation
"""

import argparse
import sys
from pathlib import Path
import json
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from pydantic import ValidationError

from qc_automation.core.artifact_fetcher import ArtifactFetcher
from qc_automation.core.errors import ConfigurationError
from qc_automation.core.installers import SilentInstallExecutor
from qc_automation.core.orchestrator import TestSetOrchestrator
from qc_automation.core.registry import InstallationRegistry, JsonInstallationStore
from qc_automation.core.remote_runner import RemoteRunner, TestSetInvocation
from qc_automation.integrations.qc_server import QualityCenterServer
from qc_automation.models.work_unit import WorkUnitStatus
from qc_automation.utils.logging import setup_root_logger
from config.settings import Settings


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Provision the Quality Center client and run a test set"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file (JSON format)"
    )

    parser.add_argument(
        "--installations",
        type=Path,
        help="Path to the installations file (JSON format)"
    )

    parser.add_argument(
        "--client",
        type=str,
        help="Name of the Quality Center client installation to use"
    )

    parser.add_argument(
        "--addin",
        type=str,
        help="Name of the QTP add-in installation to use"
    )

    parser.add_argument(
        "--script",
        type=Path,
        help="Test set run script to stage (default: runTestSet.vbs)"
    )

    parser.add_argument(
        "--workspace",
        type=Path,
        help="Build workspace (default: workspace)"
    )

    parser.add_argument(
        "--check-server",
        action="store_true",
        help="Only check that the Quality Center server answers"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from configuration, INFO)"
    )

    return parser.parse_args(argv)


def load_config(args) -> Settings:
    """Load configuration from file, then override it from the command line."""
    config_data = {}
    if args.config:
        if not args.config.exists():
            raise ConfigurationError(f"Configuration file not found: {args.config}")
        try:
            with open(args.config, encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid configuration file {args.config}: {e}") from e

    # Override with command line args
    if args.installations:
        config_data.setdefault("provisioning", {})["installations_file"] = str(args.installations)
    if args.client:
        config_data.setdefault("provisioning", {})["client_installation"] = args.client
    if args.addin:
        config_data.setdefault("provisioning", {})["addin_installation"] = args.addin
    if args.script:
        config_data.setdefault("execution", {})["script_path"] = str(args.script)
    if args.workspace:
        config_data.setdefault("execution", {})["workspace"] = str(args.workspace)
    if args.log_level:
        config_data.setdefault("logging", {})["level"] = args.log_level

    try:
        return Settings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def check_server(settings: Settings) -> int:
    """Check the configured server and report the outcome. Returns the exit code."""
    logger = logging.getLogger(__name__)
    server = QualityCenterServer(settings.server.url, settings.server.check_timeout_seconds)
    result = server.check()
    if result.ok:
        logger.info(f"Server check passed: {result.url}")
        return 0
    logger.error(f"Server check failed: {result.message}")
    return 1


def build_orchestrator(settings: Settings) -> TestSetOrchestrator:
    """Wire the work-unit components from the settings."""
    registry = InstallationRegistry.load(JsonInstallationStore(settings.provisioning.installations_file))
    runner = RemoteRunner(
        interpreter=settings.execution.interpreter,
        interpreter_args=settings.execution.interpreter_args,
        process_timeout_seconds=settings.execution.process_timeout_seconds,
    )
    return TestSetOrchestrator(
        registry=registry,
        host=settings.host.descriptor(),
        workspace=settings.execution.workspace,
        runner=runner,
        fetcher=ArtifactFetcher(download_timeout=settings.provisioning.download_timeout_seconds),
        executor=SilentInstallExecutor(timeout_seconds=settings.provisioning.install_timeout_seconds),
    )


def build_invocation(settings: Settings) -> TestSetInvocation:
    """Test-set invocation described by the settings."""
    return TestSetInvocation(
        script=settings.execution.script_path,
        server_url=settings.server.url,
        login=settings.server.login,
        password=settings.server.password,
        domain=settings.test_set.domain,
        project=settings.test_set.project,
        folder=settings.test_set.folder,
        test_set=settings.test_set.name,
        report_file=settings.test_set.report_file,
        timeout=settings.test_set.timeout,
    )


def main(argv=None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_arguments(argv)

    # Setup logging
    setup_root_logger(level=args.log_level or "INFO")
    logger = logging.getLogger(__name__)

    try:
        # Load configuration
        settings = load_config(args)
        setup_root_logger(
            log_file=settings.logging.file_path,
            level=settings.logging.level,
            max_file_size_mb=settings.logging.max_file_size_mb,
            backup_count=settings.logging.backup_count,
            format_string=settings.logging.format,
        )
        logger.info("Starting Quality Center test-set automation")
        logger.debug(f"Settings: {settings.summary()}")

        if args.check_server:
            return check_server(settings)

        orchestrator = build_orchestrator(settings)
        result = orchestrator.run(
            build_invocation(settings),
            client_name=settings.provisioning.client_installation,
            addin_name=settings.provisioning.addin_installation,
            build_variables=settings.build_variables,
        )
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    # Print summary
    logger.info("=" * 60)
    logger.info("SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Test set: {result.test_set}")
    logger.info(f"Host: {result.host}")
    logger.info(f"Status: {result.status.value}")
    if result.client_home:
        logger.info(f"Client: {result.client_home} ({result.client_state.value})")
    if result.addin_home:
        logger.info(f"QTP add-in: {result.addin_home} ({result.addin_state.value})")
    for report in result.report_paths:
        logger.info(f"Report: {report}")
    if result.error:
        logger.info(f"Error: {result.error}")
    if result.duration_seconds is not None:
        logger.info(f"Duration: {result.duration_seconds:.2f} seconds")
    logger.info("=" * 60)

    # A skipped work unit is not a failure
    return 1 if result.status == WorkUnitStatus.FAILED else 0


def cli():
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
