"""Orchestrators.

- build: sources directory → assembled and emitted artifacts
- link_check: archive → link integrity report
"""
