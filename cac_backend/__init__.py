"""
CAC Calculator Pro Backend Package.

FastAPI service layer for customer acquisition cost analysis. Ingests marketing
spend and revenue files, runs the metrics engine, and serves the results as JSON.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration and dependencies
    - models: Pydantic schemas and enums
    - services: Metrics engine and ingestion
"""

__version__ = "1.0.0"
