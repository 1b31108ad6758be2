"""Forecasting: driver sets and the three-statement projection.

- drivers.py: DriverSet value object, validation, built-in presets
- engine.py: project() and the Snapshot record
- identities.py: statement continuity checks over a projection
"""
