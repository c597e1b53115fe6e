from __future__ import annotations

import logging
import os

from fastapi import FastAPI

try:
    from .routes.families import router as families_router
    from .routes.graph import router as graph_router
    from .routes.relationship import router as relationship_router
    from .routes.suggestions import router as suggestions_router
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from routes.families import router as families_router
    from routes.graph import router as graph_router
    from routes.relationship import router as relationship_router
    from routes.suggestions import router as suggestions_router

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Relationship Graph API", version="0.1.0")

app.include_router(families_router)
app.include_router(graph_router)
app.include_router(relationship_router)
app.include_router(suggestions_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"ok": "true"}
