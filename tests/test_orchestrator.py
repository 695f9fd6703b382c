"""Tests for the work-unit orchestrator."""

import dataclasses
import logging
from pathlib import Path
from typing import Optional
from unittest.mock import MagicMock

import pytest

from conftest import FakeLauncher, write_utf16
from qc_automation.core.installers import SilentInstallExecutor
from qc_automation.core.orchestrator import TestSetOrchestrator
from qc_automation.core.registry import (
    AddinInstallationConfig,
    AddinInstallerConfig,
    ClientInstallationConfig,
    ClientInstallerConfig,
    InstallationRegistry,
    InstallationsDocument,
    JsonInstallationStore,
)
from qc_automation.core.remote_runner import RemoteRunner, TestSetInvocation
from qc_automation.models.installation import MARKER_FILE_NAME
from qc_automation.models.work_unit import ProvisionState, WorkUnitStatus

VENDOR = Path("MERCURY INTERACTIVE") / "Quality Center"


def make_registry(tmp_path: Path, *clients, addins=()) -> InstallationRegistry:
    registry = InstallationRegistry(JsonInstallationStore(tmp_path / "installations.json"))
    registry.replace(InstallationsDocument(clients=list(clients), addins=list(addins)))
    return registry


def make_orchestrator(tmp_path: Path, registry, host, run_launcher: FakeLauncher,
                      install_launcher: Optional[FakeLauncher] = None, fetcher=None) -> TestSetOrchestrator:
    return TestSetOrchestrator(
        registry=registry,
        host=host,
        workspace=tmp_path / "workspace",
        runner=RemoteRunner(launcher=run_launcher),
        fetcher=fetcher,
        executor=SilentInstallExecutor(launcher=install_launcher or FakeLauncher()),
    )


@pytest.fixture
def script(tmp_path: Path) -> Path:
    path = tmp_path / "scripts" / "runTestSet.vbs"
    path.parent.mkdir()
    path.write_text("' run")
    return path


@pytest.fixture
def invocation(script: Path) -> TestSetInvocation:
    return TestSetInvocation(
        script=script,
        server_url="http://qc/qcbin",
        login="builder",
        password="",
        domain="DEFAULT",
        project="Shop",
        folder="Root",
        test_set="Smoke",
        report_file="qcreport.xml",
        timeout="600",
    )


@pytest.fixture
def manual_client(tmp_path: Path) -> ClientInstallationConfig:
    """A client installed by hand in its vendor folder."""
    home = tmp_path / "tools" / "qc"
    (home / VENDOR).mkdir(parents=True)
    (home / VENDOR / "OTAClient.dll").touch()
    return ClientInstallationConfig(name="qc", home="$TOOLS/qc")


def write_report(request) -> None:
    (Path(request.working_directory) / "qcreport.xml").write_text("<report/>")


def test_successful_work_unit(tmp_path, windows_host, manual_client, invocation, script) -> None:
    run_launcher = FakeLauncher(side_effect=write_report)
    orchestrator = make_orchestrator(tmp_path, make_registry(tmp_path, manual_client), windows_host, run_launcher)

    result = orchestrator.run(invocation, client_name="qc")

    assert result.status == WorkUnitStatus.SUCCEEDED
    assert result.client_state == ProvisionState.ALREADY_INSTALLED
    assert Path(result.client_home) == tmp_path / "tools" / "qc" / VENDOR
    assert result.report_paths == [str(tmp_path / "workspace" / "qcreport.xml")]
    assert run_launcher.requests[0].command[2] == str(tmp_path / "workspace" / "runTestSet.vbs")
    assert not (tmp_path / "workspace" / "runTestSet.vbs").exists()
    assert script.exists()


def test_fresh_host_installs_the_client(tmp_path, windows_host, invocation) -> None:
    msi = tmp_path / "QCClient.msi"
    msi.write_bytes(b"msi")
    home = tmp_path / "tools" / "fresh"

    def lay_out_client(request):
        (home / VENDOR).mkdir(parents=True, exist_ok=True)
        (home / VENDOR / "OTAClient.dll").touch()

    client = ClientInstallationConfig(
        name="fresh", home=str(home), installer=ClientInstallerConfig(local_path=str(msi))
    )
    install_launcher = FakeLauncher(side_effect=lay_out_client)
    orchestrator = make_orchestrator(
        tmp_path, make_registry(tmp_path, client), windows_host,
        FakeLauncher(side_effect=write_report), install_launcher,
    )

    result = orchestrator.run(invocation, client_name="fresh")

    assert result.succeeded
    assert result.client_state == ProvisionState.INSTALLED
    assert (home / VENDOR / MARKER_FILE_NAME).exists()
    assert install_launcher.call_count == 1


def test_failing_run_echoes_report(tmp_path, windows_host, manual_client, invocation, caplog) -> None:
    """A failing scheduler fails the unit after its UTF-16 log is echoed."""
    def fail(request):
        write_utf16(Path(request.working_directory) / "qcreport.xml", "Smoke: 1 test failed\r\n")

    orchestrator = make_orchestrator(
        tmp_path, make_registry(tmp_path, manual_client), windows_host, FakeLauncher(exit_code=1, side_effect=fail)
    )

    with caplog.at_level(logging.INFO):
        result = orchestrator.run(invocation, client_name="qc")

    assert result.status == WorkUnitStatus.FAILED
    assert "exit code 1" in result.error
    assert any(r.getMessage() == "Smoke: 1 test failed\r\n" for r in caplog.records)
    assert not (tmp_path / "workspace" / "runTestSet.vbs").exists()


def test_unsupported_host_is_skipped(tmp_path, posix_host, manual_client, invocation) -> None:
    run_launcher = FakeLauncher()
    orchestrator = make_orchestrator(tmp_path, make_registry(tmp_path, manual_client), posix_host, run_launcher)

    result = orchestrator.run(invocation, client_name="qc")

    assert result.status == WorkUnitStatus.SKIPPED
    assert run_launcher.call_count == 0


def test_no_client_selected(tmp_path, windows_host, invocation) -> None:
    orchestrator = make_orchestrator(tmp_path, make_registry(tmp_path), windows_host, FakeLauncher())

    result = orchestrator.run(invocation, client_name=None)

    assert result.status == WorkUnitStatus.FAILED
    assert "No Quality Center client" in result.error


def test_missing_client_library(tmp_path, windows_host, invocation, caplog) -> None:
    client = ClientInstallationConfig(name="empty", home=str(tmp_path / "empty"))
    run_launcher = FakeLauncher()
    orchestrator = make_orchestrator(tmp_path, make_registry(tmp_path, client), windows_host, run_launcher)

    with caplog.at_level(logging.INFO):
        result = orchestrator.run(invocation, client_name="empty")

    assert result.status == WorkUnitStatus.FAILED
    assert "OTAClient.dll" in result.error
    assert run_launcher.call_count == 0
    assert "no installation was found" in caplog.text


def test_missing_script(tmp_path, windows_host, manual_client, invocation, script) -> None:
    script.unlink()
    orchestrator = make_orchestrator(tmp_path, make_registry(tmp_path, manual_client), windows_host, FakeLauncher())

    result = orchestrator.run(invocation, client_name="qc")

    assert result.status == WorkUnitStatus.FAILED
    assert "run script" in result.error


def test_addin_without_license_fails_the_unit(tmp_path, windows_host, manual_client, invocation) -> None:
    addin = AddinInstallationConfig(
        name="qtp", home=str(tmp_path / "qtp"), installer=AddinInstallerConfig(version="9.2")
    )
    fetcher = MagicMock()
    run_launcher = FakeLauncher()
    orchestrator = make_orchestrator(
        tmp_path, make_registry(tmp_path, manual_client, addins=[addin]), windows_host, run_launcher, fetcher=fetcher
    )

    result = orchestrator.run(invocation, client_name="qc", addin_name="qtp")

    assert result.status == WorkUnitStatus.FAILED
    assert "license" in result.error
    fetcher.fetch.assert_not_called()
    assert run_launcher.call_count == 0


def test_keyboard_interrupt_propagates(tmp_path, windows_host, manual_client, invocation) -> None:
    def abort(request):
        raise KeyboardInterrupt

    orchestrator = make_orchestrator(
        tmp_path, make_registry(tmp_path, manual_client), windows_host, FakeLauncher(side_effect=abort)
    )

    with pytest.raises(KeyboardInterrupt):
        orchestrator.run(invocation, client_name="qc")

    assert not (tmp_path / "workspace" / "runTestSet.vbs").exists()


def test_script_already_in_workspace_is_kept(tmp_path, windows_host, manual_client, invocation) -> None:
    in_place = tmp_path / "workspace" / "runTestSet.vbs"
    in_place.parent.mkdir()
    in_place.write_text("' run")
    run_launcher = FakeLauncher(side_effect=write_report)
    orchestrator = make_orchestrator(tmp_path, make_registry(tmp_path, manual_client), windows_host, run_launcher)

    result = orchestrator.run(dataclasses.replace(invocation, script=in_place), client_name="qc")

    assert result.status == WorkUnitStatus.SUCCEEDED
    assert run_launcher.requests[0].command[2] == str(in_place)
    assert in_place.read_text() == "' run"


def test_unusable_workspace_fails_the_unit(tmp_path, windows_host, manual_client, invocation, script) -> None:
    (tmp_path / "workspace").write_text("not a directory")
    run_launcher = FakeLauncher()
    orchestrator = make_orchestrator(tmp_path, make_registry(tmp_path, manual_client), windows_host, run_launcher)

    result = orchestrator.run(invocation, client_name="qc")

    assert result.status == WorkUnitStatus.FAILED
    assert "Could not stage" in result.error
    assert run_launcher.call_count == 0
    assert script.exists()


def test_uncreatable_install_root_fails_the_unit(tmp_path, windows_host, invocation) -> None:
    msi = tmp_path / "QCClient.msi"
    msi.write_bytes(b"msi")
    (tmp_path / "blocker").write_text("not a directory")
    client = ClientInstallationConfig(
        name="blocked", home=str(tmp_path / "blocker" / "qc"), installer=ClientInstallerConfig(local_path=str(msi))
    )
    install_launcher = FakeLauncher()
    orchestrator = make_orchestrator(
        tmp_path, make_registry(tmp_path, client), windows_host, FakeLauncher(), install_launcher
    )

    result = orchestrator.run(invocation, client_name="blocked")

    assert result.status == WorkUnitStatus.FAILED
    assert "Cannot create installation directory" in result.error
    assert install_launcher.call_count == 0


def test_hand_installed_addin_not_found_is_a_warning(tmp_path, windows_host, manual_client,
                                                     invocation, caplog) -> None:
    """An add-in without installer is never checked; an empty home is reported."""
    addin = AddinInstallationConfig(name="qtp", home=str(tmp_path / "qtp"))
    orchestrator = make_orchestrator(
        tmp_path, make_registry(tmp_path, manual_client, addins=[addin]), windows_host,
        FakeLauncher(side_effect=write_report),
    )

    with caplog.at_level(logging.WARNING):
        result = orchestrator.run(invocation, client_name="qc", addin_name="qtp")

    assert result.status == WorkUnitStatus.SUCCEEDED
    assert result.addin_state == ProvisionState.ALREADY_INSTALLED
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("qtp has no installer and no installation was found" in message for message in warnings)
