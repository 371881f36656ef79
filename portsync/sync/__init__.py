"""Sync cycle — the layer that turns an upstream diff into tracked port work.

This package provides the primitives for:
- Inventory: the changed files in a base..head range
- Classification: mirror or exclude, with ambiguous cases held for review
- Mapping: source paths onto expected target paths
- Checklist: per-file status, persisted between runs
- Tests and reporting: target test results and the final sync report
"""
