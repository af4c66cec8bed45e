"""NLP utilities for preprocessing, classification, and routing.

Module scope:
- Message cleanup (`preprocessor`).
- Language, complexity, and intent signals (`language_detector`, `complexity`,
  `intent_classifier`) over the tables in `phrase_tables`.
- Pipeline selection (`intent_router`) and triage reply decoding (`triage_decoder`).

Determinism profile:
- Entirely rule-based; no model calls happen in this package.
"""
