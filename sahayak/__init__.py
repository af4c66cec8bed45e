"""Kisaan Sahayak: farmer question orchestration over two language-model providers.

Package layout:
    - `core`: request orchestration engine, routing types, errors, reply normalization.
    - `nlp`: preprocessing, classification, pipeline selection, triage decoding.
    - `prompting`: deterministic prompt templates.
    - `llm`: provider configuration, HTTP transport, adapters with model fallback.
    - `safety`: rule-based input screening.
    - `memory`: conversation store contract and context resolution.
    - `api`: HTTP and CLI adapters.
"""
