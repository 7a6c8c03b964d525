"""
PlantPal - personal plant watering tracker.

Subpackages:
- scheduling: calendar math and watering urgency
- identity: password and GitHub login reconciliation
- storage: SQLAlchemy-backed users, plants and sessions
- api: FastAPI application
"""

__version__ = "1.0.0"
