"""Tests for installer retrieval."""

import io
import urllib.error
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from qc_automation.core.artifact_fetcher import ArtifactFetcher, validate_local_installer
from qc_automation.core.errors import ArtifactIsDirectory, ArtifactNotFound, NetworkError
from qc_automation.integrations.qc_server import join_url
from qc_automation.models.installer import InstallerSpec, SourceKind


def test_local_installer_is_copied(tmp_path: Path) -> None:
    """A local installer is copied byte for byte."""
    source = tmp_path / "QCClient.msi"
    source.write_bytes(b"\xd0\xcf\x11\xe0msi")
    destination = tmp_path / "target" / "QCClient.msi"
    destination.parent.mkdir()

    spec = InstallerSpec(source_kind=SourceKind.LOCAL_PATH, location_value=str(source))
    result = ArtifactFetcher().fetch(spec, destination)

    assert result == destination
    assert destination.read_bytes() == b"\xd0\xcf\x11\xe0msi"


def test_missing_local_installer(tmp_path: Path) -> None:
    """A missing local installer raises ArtifactNotFound."""
    spec = InstallerSpec(source_kind=SourceKind.LOCAL_PATH, location_value=str(tmp_path / "nope.msi"))

    with pytest.raises(ArtifactNotFound):
        ArtifactFetcher().fetch(spec, tmp_path / "out.msi")


def test_directory_is_not_an_installer(tmp_path: Path) -> None:
    """A directory raises ArtifactIsDirectory."""
    with pytest.raises(ArtifactIsDirectory):
        validate_local_installer(str(tmp_path))


@pytest.mark.parametrize(
    "base",
    ["http://qc:8080/qcbin", "http://qc:8080/qcbin/"],
)
@pytest.mark.parametrize(
    "relative",
    ["PlugIns/ClientSideInstallation/QCClient.msi", "/PlugIns/ClientSideInstallation/QCClient.msi"],
)
def test_join_url_single_separator(base: str, relative: str) -> None:
    """Exactly one slash joins base and relative path."""
    assert join_url(base, relative) == "http://qc:8080/qcbin/PlugIns/ClientSideInstallation/QCClient.msi"


def test_remote_installer_is_downloaded(tmp_path: Path) -> None:
    """The body is streamed to the destination from the joined URL."""
    urlopen = MagicMock(return_value=io.BytesIO(b"payload"))
    spec = InstallerSpec(
        source_kind=SourceKind.REMOTE_URL,
        location_value="http://qc/qcbin/",
        relative_path="PlugIns/ClientSideInstallation/QCClient.msi",
    )
    destination = tmp_path / "QCClient.msi"

    ArtifactFetcher(download_timeout=30, urlopen=urlopen).fetch(spec, destination)

    assert destination.read_bytes() == b"payload"
    urlopen.assert_called_once_with(
        "http://qc/qcbin/PlugIns/ClientSideInstallation/QCClient.msi", timeout=30
    )


def test_network_error_removes_partial_file(tmp_path: Path) -> None:
    """A failed download leaves no destination file behind."""

    class BrokenBody(io.BytesIO):
        def read(self, *args):
            raise OSError("connection reset")

    urlopen = MagicMock(return_value=BrokenBody())
    spec = InstallerSpec(source_kind=SourceKind.REMOTE_URL, location_value="http://qc/setup.exe")
    destination = tmp_path / "setup.exe"

    with pytest.raises(NetworkError):
        ArtifactFetcher(urlopen=urlopen).fetch(spec, destination)

    assert not destination.exists()


def test_unreachable_server(tmp_path: Path) -> None:
    """URL errors become NetworkError."""
    urlopen = MagicMock(side_effect=urllib.error.URLError("no route to host"))
    spec = InstallerSpec(source_kind=SourceKind.REMOTE_URL, location_value="http://qc/setup.exe")

    with pytest.raises(NetworkError, match="no route to host"):
        ArtifactFetcher(urlopen=urlopen).fetch(spec, tmp_path / "setup.exe")


def test_artifact_name_of_remote_spec() -> None:
    """The artifact name is the URL's file name."""
    spec = InstallerSpec(
        source_kind=SourceKind.REMOTE_URL,
        location_value="http://updates.example.com/addins/TDPlugInsSetup.exe?x=1",
    )

    assert spec.artifact_name == "TDPlugInsSetup.exe"
