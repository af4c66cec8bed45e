"""Safety package.

This package contains lightweight, rule-based input screening used by
orchestration to reject a request before classification, prompt construction, or
any provider call.
"""
