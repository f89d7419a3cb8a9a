"""
FastAPI routers grouped by domain (auth, user).

Each file inside this package exposes an APIRouter that is included in the
application built by ``auth_api.app.create_app``.
"""
