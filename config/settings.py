"""
Configuration settings for the Quality Center automation system.
"""

from typing import Optional, Dict, Any, List
from pathlib import Path
from pydantic import BaseModel, Field, validator
from pydantic_settings import BaseSettings

from qc_automation.models.installation import HostDescriptor, HostKind, OSFamily


class ServerConfig(BaseModel):
    """Quality Center server connection."""
    url: str = Field(..., description="Quality Center server URL, e.g. http://qc.example.com/qcbin")
    login: str = Field(..., description="User name used to log into the server")
    password: str = Field(default="", description="Password associated to the login, may be blank")
    check_timeout_seconds: float = Field(default=10.0, description="Timeout of the server reachability check")

    @validator('url', 'login')
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must be defined")
        return v


class TestSetConfig(BaseModel):
    """Test set to run and where to write its report."""
    domain: str = Field(..., description="Domain of the Quality Center project")
    project: str = Field(..., description="Quality Center project")
    folder: str = Field(..., description="Test set folder, e.g. Root\\Nightly")
    name: str = Field(..., description="Test set name")
    report_file: str = Field(
        default="qcreport.xml",
        description="Report file name, may use $QC_DOMAIN, $QC_PROJECT, $TS_FOLDER, $TS_NAME and build variables"
    )
    timeout: str = Field(default="600", description="Timeout passed to the run script")

    __test__ = False

    @validator('domain', 'project', 'folder', 'name')
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must be defined")
        return v


class ExecutionConfig(BaseModel):
    """How the test-set script is run."""
    interpreter: str = Field(default="cscript", description="Script host")
    interpreter_args: List[str] = Field(default_factory=lambda: ["/nologo"])
    script_path: Path = Field(default=Path("runTestSet.vbs"), description="Test-set run script to stage")
    workspace: Path = Field(default=Path("workspace"), description="Build workspace")
    process_timeout_seconds: Optional[int] = Field(None, description="Kill the run after this delay")


class ProvisioningConfig(BaseModel):
    """Tool installations and installer behaviour."""
    installations_file: Path = Field(
        default=Path("config/installations.json"),
        description="Persisted client and add-in installations"
    )
    client_installation: Optional[str] = Field(None, description="Selected client installation name")
    addin_installation: Optional[str] = Field(None, description="Selected QTP add-in installation name")
    install_timeout_seconds: Optional[int] = Field(None, description="Kill an installer after this delay")
    download_timeout_seconds: Optional[float] = Field(default=300.0, description="Download socket timeout")


class HostConfig(BaseModel):
    """The host this process provisions and runs on."""
    name: Optional[str] = Field(None, description="Host name, defaults to the machine name")
    kind: HostKind = Field(default=HostKind.CONTROLLER)
    os_family: Optional[OSFamily] = Field(None, description="Detected when unset")
    root: Optional[Path] = Field(None, description="Root of default tool homes, defaults to the current directory")
    tool_locations: Dict[str, str] = Field(default_factory=dict, description="Home overrides by installation name")

    def descriptor(self, environment: Optional[Dict[str, str]] = None) -> HostDescriptor:
        """Build the HostDescriptor for this host."""
        local = HostDescriptor.local(name=self.name, root=self.root)
        return HostDescriptor(
            name=local.name,
            kind=self.kind,
            os_family=self.os_family or local.os_family,
            root=local.root,
            tool_locations=self.tool_locations,
            environment=environment if environment is not None else local.environment,
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )
    file_path: Optional[Path] = Field(default=Path("logs/qc_automation.log"))
    max_file_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(default=5, description="Number of log backups to keep")


class Settings(BaseSettings):
    """Main application settings."""
    server: ServerConfig
    test_set: TestSetConfig
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    provisioning: ProvisioningConfig = Field(default_factory=ProvisioningConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Build variables available to $NAME macros, after environment expansion
    build_variables: Dict[str, str] = Field(default_factory=dict)

    class Config:
        env_prefix = "QC_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_nested_delimiter = "__"
        extra = "ignore"  # Ignore extra fields from environment

    def summary(self) -> Dict[str, Any]:
        """Settings safe to log: the password is never included."""
        data = self.model_dump(mode="json")
        data["server"]["password"] = "********" if self.server.password else ""
        return data
