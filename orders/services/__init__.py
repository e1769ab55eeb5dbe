"""
Service layer for the orders app.

Views and management commands go through these functions instead of touching
the models directly, so the total and status invariants live in one place.
"""
