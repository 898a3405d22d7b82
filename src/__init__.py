"""
Deploy Hook - Source Package
============================

This package contains all source code for the service:
- deployhook: registry push webhook listener and deploy runner

Quick Imports:
    from src.deployhook import create_app, load_configuration
"""

# Lazy imports - only import when accessed to avoid triggering
# unnecessary dependencies during test collection
__all__ = ["deployhook"]


def __getattr__(name):
    """Lazy module loading to avoid import side effects."""
    if name == "deployhook":
        from src import deployhook
        return deployhook
    raise AttributeError(f"module 'src' has no attribute {name!r}")
