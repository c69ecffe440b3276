"""
FastAPI routers of the backend service, grouped by entity.

Each module exposes an APIRouter included by ``tracker.app``. Route paths and
body shapes are the ones the repositories' RemoteBackend client speaks.
"""
