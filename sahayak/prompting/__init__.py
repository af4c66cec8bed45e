"""Prompting package.

This package contains deterministic prompt-construction helpers used by the core
orchestration layer. It does not perform routing, provider calls, or reply
normalization.
"""
