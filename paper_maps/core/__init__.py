"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Publisher registry, user agent, output names
- exceptions: Custom exception hierarchy
"""
