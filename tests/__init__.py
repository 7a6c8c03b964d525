"""
PlantPal Test Suite

Tests are organized into:
- unit/: Unit tests for scheduling, identity, storage and middleware
- integration/: HTTP tests against the ASGI app
"""
