"""Domain layer: recurrence rules, dates, naming, and eligibility.

This layer depends only on stdlib, pydantic, ruamel.yaml and dateutil.
It must never import from services, infrastructure, commands, or output.
"""
