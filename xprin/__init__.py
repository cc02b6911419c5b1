"""Configuration checks and result reporting for Crossplane composition tests."""

__version__ = "0.1.0"
__all__ = ["config", "status", "steps", "testcaseresult", "testsuiteresult"]