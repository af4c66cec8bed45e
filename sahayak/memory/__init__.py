"""Memory subsystem package.

Architectural role:
    - `conversation_store`: store protocol used by the core plus the in-process
      implementation.
    - `context_resolver`: recovers the previous question and answer for
      continuation messages.
"""
