"""
Configuration module.

Frozen dataclass defaults, YAML instrument overrides and validation for the
tick decision engine.
"""
