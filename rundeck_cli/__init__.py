"""
Rundeck CLI - Three-layer architecture for the Rundeck API.

Layers:
- core: Versioned response types and HTTP client
- sdk: High-level RundeckClient with nice ergonomics
- cli: Opinionated command-line interface
"""

from rundeck_cli.sdk import RundeckClient

__version__ = "0.1.0"
__all__ = ["RundeckClient"]
