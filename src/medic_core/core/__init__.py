"""
Medic Core Utilities

Settings, logging, and time/identifier helpers shared across the package.
"""
