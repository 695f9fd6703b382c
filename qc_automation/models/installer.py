"""
Installer source and add-in version models.
"""

from enum import Enum
from typing import Optional, Dict
from pydantic import BaseModel, Field


class SourceKind(str, Enum):
    """Where an installer payload comes from."""
    LOCAL_PATH = "local_path"
    REMOTE_URL = "remote_url"


class AddinVersion(BaseModel):
    """A supported QTP add-in release."""
    version: str
    url: str = Field(..., description="Download URL on the HP update center")
    key: str = Field(..., description="InstallShield product key used in the response file")

    class Config:
        frozen = True


ADDIN_VERSIONS: Dict[str, AddinVersion] = {
    "9.0": AddinVersion(
        version="9.0",
        url="http://update.external.hp.com/qualitycenter/qc90/mictools/qtp/TDPlugInsSetup.exe",
        key="B7677BB4-7E32-4430-90AE-E37EE6FED55E",
    ),
    "9.1": AddinVersion(
        version="9.1",
        url="http://update.external.hp.com/qualitycenter/qc90/mictools/qtp/qtp_9_1/TDPlugInsSetup.exe",
        key="B7677BB4-7E32-4430-90AE-E37EE6FED55E",
    ),
    "9.2": AddinVersion(
        version="9.2",
        url="http://update.external.hp.com/qualitycenter/qc90/mictools/qtp/qtp_sp/TDPlugInsSetup.exe",
        key="051B35E4-5986-4AD5-9470-693558044699",
    ),
}


def resolve_addin_version(version: Optional[str]) -> AddinVersion:
    """
    Look up a supported add-in version.

    Args:
        version: Version string such as "9.2"

    Returns:
        The matching AddinVersion

    Raises:
        UnsupportedVersion: If the version is not in the table
    """
    from ..core.errors import UnsupportedVersion

    entry = ADDIN_VERSIONS.get((version or "").strip())
    if entry is None:
        raise UnsupportedVersion(
            f"Unsupported QTP add-in version: {version!r} "
            f"(supported: {', '.join(sorted(ADDIN_VERSIONS))})"
        )
    return entry


class InstallerSpec(BaseModel):
    """Where to obtain one installer payload for one provisioning attempt."""
    source_kind: SourceKind
    location_value: str = Field(..., description="Local file path or base URL")
    relative_path: Optional[str] = Field(None, description="Path appended to a base URL")
    target_version: Optional[str] = Field(None, description="Add-in version, if any")

    class Config:
        frozen = True

    @property
    def download_url(self) -> str:
        """Full download URL for REMOTE_URL specs."""
        from ..integrations.qc_server import join_url

        if self.relative_path:
            return join_url(self.location_value, self.relative_path)
        return self.location_value

    @property
    def artifact_name(self) -> str:
        """File name of the payload at its source."""
        if self.source_kind == SourceKind.LOCAL_PATH:
            source = self.location_value
        else:
            source = self.download_url.split("?", 1)[0]
        return source.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
