"""
Quality Center test-set automation: tool provisioning and scripted test-set runs.
"""

__version__ = "1.0.0"
