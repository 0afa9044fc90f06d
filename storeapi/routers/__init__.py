"""
FastAPI routers grouped by domain (auth, categories, coupons).

Each module exposes an APIRouter that is included by the application factory
in app.py.
"""
