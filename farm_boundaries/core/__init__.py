"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants, unit conversions, service-area presets
- exceptions: Custom exception hierarchy
"""
