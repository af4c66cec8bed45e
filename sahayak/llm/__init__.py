"""LLM access package.

Architectural role:
    Provides provider configuration, HTTP transport, and async adapters used by the
    orchestration engine to call the specialist and general-purpose models.

Module split:
    - `provider_config`: environment-driven, frozen provider and mode settings.
    - `client`: provider-specific HTTP transport and response parsing.
    - `service`: async adapters and the general-purpose model fallback chain.
"""
