"""Domain models and entities.

Why:
- Pure, strict data structures (Pydantic v2) live here.
- The domain knows nothing about wsadmin, XML files or the CLI: only the
  WebSphere configuration concepts.
"""
