"""
Per-host and per-environment specialization of tool installations.
"""

import logging
from pathlib import PurePath
from typing import Mapping, Optional

from ..models.installation import HostDescriptor, ToolInstallation
from ..utils.macros import expand
from .errors import UnsupportedHost


class PathTranslator:
    """Maps a logical installation root to a concrete path on a host."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def for_host(self, installation: ToolInstallation, host: HostDescriptor) -> ToolInstallation:
        """
        Get the installation as seen from ``host``.

        The home is taken from the host's override for this installation,
        then from the installation itself, then defaults to
        ``<host root>/tools/<name>``. Environment references are expanded
        with the host's environment.

        Args:
            installation: Installation from the persisted configuration
            host: Target host

        Returns:
            A new ToolInstallation with a concrete home

        Raises:
            UnsupportedHost: If the host is not a Windows host
        """
        if not host.is_windows:
            raise UnsupportedHost(installation.name, host.name, host.os_family.value)

        home = host.tool_locations.get(installation.name) or installation.home
        if not home:
            home = str(PurePath(host.root) / "tools" / installation.sanitized_name)

        home = expand(home, host.environment)
        self.logger.debug(f"{installation.name} resolves to {home} on {host.name} ({host.kind.value})")
        return installation.with_home(home)

    def for_environment(self, installation: ToolInstallation,
                        env: Optional[Mapping[str, str]]) -> ToolInstallation:
        """Get a copy of the installation with environment references in its home expanded."""
        return installation.with_home(expand(installation.home, env) or "")
