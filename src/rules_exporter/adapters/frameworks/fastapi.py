"""FastAPI adapter for the probe endpoint.

Lets the exporter be mounted inside an existing FastAPI application::

    app.include_router(create_probe_router(context))
"""

from fastapi import APIRouter, HTTPException, Query, Response

from rules_exporter.core.encoding.prometheus import CONTENT_TYPE
from rules_exporter.core.errors import BadRequestError, NotFoundError
from rules_exporter.core.pipeline import ExporterContext


def create_probe_router(context: ExporterContext) -> APIRouter:
    """Create a FastAPI router with the /probe endpoint.

    Args:
        context: Shared exporter state, reused by every request.

    Returns:
        APIRouter with /probe configured.
    """
    router = APIRouter()

    @router.get("/probe")
    async def probe(target: str | None = Query(default=None)) -> Response:
        """Evaluate a target's rules and return Prometheus text format."""
        try:
            body = await context.probe(target)
        except BadRequestError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        return Response(content=body, media_type=CONTENT_TYPE)

    return router
