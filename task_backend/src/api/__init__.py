"""
FastAPI task backend package.

The application instance lives in ``src.api.main``; importing it reads the
environment and fails fast when DATABASE_URL or JWT_SECRET is missing.
"""
