"""Core orchestration package.

Architectural role:
    Exposes the request-orchestration layer that sits between API/CLI entrypoints
    and lower-level subsystems (classification, routing, prompting, memory, and
    provider adapters).

Composition:
    - `engine`: router state machine and the four generation pipelines.
    - `routing_types`: shared classification, mode, pipeline, and result schema.
    - `errors`: exception taxonomy mapped to transport statuses by adapters.
    - `normalizer`: deterministic reply cleanup and detail check.

Determinism and side effects:
    Package import itself is deterministic and side-effect free. Runtime side effects
    are performed by `engine` during request processing.
"""
