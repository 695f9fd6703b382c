"""
Persisted client and add-in installations.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from datetime import datetime
from pydantic import BaseModel, Field, ValidationError

from ..models.installation import ToolInstallation, ToolKind
from ..models.installer import resolve_addin_version
from .errors import ConfigurationError, UnknownInstallation


class ClientInstallerConfig(BaseModel):
    """Where the client installer comes from. A local path wins over the server."""
    server_url: Optional[str] = Field(None, description="Quality Center server to download QCClient.msi from")
    local_path: Optional[str] = Field(None, description="QCClient.msi on the controller")


class AddinInstallerConfig(BaseModel):
    """Where the QTP add-in installer comes from."""
    version: str = Field(..., description="Add-in version, e.g. 9.2")
    local_path: Optional[str] = Field(None, description="TDPlugInsSetup.exe on the controller")
    accept_license: bool = Field(default=False, description="License agreement accepted")


class ClientInstallationConfig(BaseModel):
    """A named Quality Center client installation."""
    name: str
    home: str = ""
    installer: Optional[ClientInstallerConfig] = None

    def to_installation(self) -> ToolInstallation:
        return ToolInstallation(name=self.name, home=self.home, kind=ToolKind.CLIENT)


class AddinInstallationConfig(BaseModel):
    """A named QTP add-in installation."""
    name: str
    home: str = ""
    installer: Optional[AddinInstallerConfig] = None

    def to_installation(self) -> ToolInstallation:
        return ToolInstallation(name=self.name, home=self.home, kind=ToolKind.QTP_ADDIN)


class InstallationsDocument(BaseModel):
    """Serialized form of the registry."""
    clients: List[ClientInstallationConfig] = Field(default_factory=list)
    addins: List[AddinInstallationConfig] = Field(default_factory=list)


class InstallationStore(Protocol):
    """Load/save boundary of the registry."""

    def load(self) -> InstallationsDocument:
        ...

    def save(self, document: InstallationsDocument) -> None:
        ...


class JsonInstallationStore:
    """Stores installations in a JSON file."""

    def __init__(self, path: Path):
        self.logger = logging.getLogger(__name__)
        self.path = Path(path)

    def load(self) -> InstallationsDocument:
        """
        Load the document, or an empty one if the file does not exist.

        Raises:
            ConfigurationError: If the file is not a valid document
        """
        if not self.path.exists():
            self.logger.warning(f"Installations file not found: {self.path}, starting empty")
            return InstallationsDocument()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return InstallationsDocument(**data)
        except (ValueError, TypeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid installations file {self.path}: {e}") from e

    def save(self, document: InstallationsDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = document.model_dump(mode="json")
        data["timestamp"] = datetime.utcnow().isoformat()
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        self.logger.info(f"Saved installations to {self.path}")


class InstallationRegistry:
    """Known client and add-in installations, backed by an InstallationStore."""

    def __init__(self, store: InstallationStore):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self._clients: Dict[str, ClientInstallationConfig] = {}
        self._addins: Dict[str, AddinInstallationConfig] = {}

    @classmethod
    def load(cls, store: InstallationStore) -> "InstallationRegistry":
        """Create a registry from the store's current content."""
        registry = cls(store)
        registry.replace(store.load())
        return registry

    def replace(self, document: InstallationsDocument) -> None:
        """
        Replace all installations after validating them.

        Raises:
            ConfigurationError: Duplicate names
            UnsupportedVersion: An add-in installer with an unknown version
        """
        self._validate(document)
        self._clients = {c.name: c for c in document.clients}
        self._addins = {a.name: a for a in document.addins}
        self.logger.debug(f"{len(self._clients)} client and {len(self._addins)} add-in installations")

    def save(self) -> None:
        self.store.save(self.document())

    def document(self) -> InstallationsDocument:
        return InstallationsDocument(clients=list(self._clients.values()), addins=list(self._addins.values()))

    @property
    def clients(self) -> List[ClientInstallationConfig]:
        return list(self._clients.values())

    @property
    def addins(self) -> List[AddinInstallationConfig]:
        return list(self._addins.values())

    def find_client(self, name: str) -> ClientInstallationConfig:
        try:
            return self._clients[name]
        except KeyError:
            raise UnknownInstallation(f"Unknown Quality Center client installation: {name}") from None

    def find_addin(self, name: str) -> AddinInstallationConfig:
        try:
            return self._addins[name]
        except KeyError:
            raise UnknownInstallation(f"Unknown QTP add-in installation: {name}") from None

    def _validate(self, document: InstallationsDocument) -> None:
        for label, entries in (("client", document.clients), ("add-in", document.addins)):
            names = [e.name for e in entries]
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise ConfigurationError(f"Duplicate {label} installation names: {', '.join(duplicates)}")

        for addin in document.addins:
            if addin.installer is not None:
                resolve_addin_version(addin.installer.version)
