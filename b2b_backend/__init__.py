"""
B2B Network Backend.

Core components:
- api: FastAPI app and routers
- services: Accounts, profiles, business pages, teams, jobs, connections
- db: SQLAlchemy models and session handling
"""
