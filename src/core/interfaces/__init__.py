"""Core interfaces.

Why:
- Contracts (Protocol) implemented by concrete adapters.
- The core depends on these abstractions, never on wsadmin or lxml.
"""

from core.interfaces.provider import ResourceProvider
from core.interfaces.runner import ScriptRunner, WsadminTarget

__all__ = ["ResourceProvider", "ScriptRunner", "WsadminTarget"]
