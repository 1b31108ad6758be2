"""Exports & reporting: CSV writers and Markdown reports.

- writers.py: CSV emitters for projections and scenario comparisons
- reports.py: assumptions.md, validation_report.md and valuation.md generators
"""
