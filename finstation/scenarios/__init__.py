"""Scenarios: named driver sets, the in-memory store, import from reported
actuals, and JSON persistence.
"""
