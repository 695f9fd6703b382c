"""
Integration modules for external services.
"""

from .qc_server import QualityCenterServer, ServerCheckResult, join_url

__all__ = ["QualityCenterServer", "ServerCheckResult", "join_url"]
