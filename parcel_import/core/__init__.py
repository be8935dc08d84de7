"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants, supported formats, subscription tiers
- diagnostics: Structured per-feature import events
- exceptions: Custom exception hierarchy
- ingress: HTTP boundary helpers
"""
