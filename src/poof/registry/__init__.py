"""Session registry adapters for poof.

Public API:
    SessionRegistry -- Abstract base class
    ZmxRegistry -- zmx CLI backend
"""

from poof.registry.base import SessionRegistry
from poof.registry.zmx import ZmxRegistry, parse_list_output

__all__ = ["SessionRegistry", "ZmxRegistry", "parse_list_output"]
