"""
RSR (Rhodium Standard Repository) compliance core.

This package defines:
- Severity / policy-pack model and the static rule tables
- Policy resolution (overrides, skip, per-pack severity columns)
- Evaluation of a repository against the rules via an existence oracle
- Deterministic scoring and the ComplianceReport
"""
