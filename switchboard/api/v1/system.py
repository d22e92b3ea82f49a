from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ... import __version__
from ...schemas.module import VersionResponse
from ...utils.metrics import get_metrics

DISTRIBUTION_NAME = "nexus-switchboard"

router = APIRouter(tags=["system"])


@router.get("/version", response_model=VersionResponse, summary="Host package information")
async def get_version() -> VersionResponse:
    try:
        installed = version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        installed = __version__
    return VersionResponse(name=DISTRIBUTION_NAME, version=installed)


@router.get("/metrics", summary="Prometheus metrics")
async def metrics() -> Response:
    return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)
