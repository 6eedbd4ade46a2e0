"""
Core modules for legal-doc-auto.

This package contains the guideline calculator, entitlement checks,
content sanitization, artifact persistence and the generation pipeline.
"""
