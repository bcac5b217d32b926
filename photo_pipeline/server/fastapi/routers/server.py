"""Router for server health and readiness probes."""

import platform
import socket

import psutil
from fastapi import APIRouter

from photo_pipeline.constants import APPLICATION_NAME, SERVICE_VERSION

router = APIRouter(
    prefix="/server",
    tags=["server"],
    responses={404: {"description": "Not found"}},
)


@router.get("/health")
async def health():
    """Get basic process and host information.

    Returns:
        dict: application name and version, platform, hostname, total RAM.
    """
    return {
        "success": True,
        "status": "ok",
        "application": APPLICATION_NAME,
        "version": SERVICE_VERSION,
        "platform": platform.system(),
        "architecture": platform.machine(),
        "hostname": socket.gethostname(),
        "ram": str(round(psutil.virtual_memory().total / (1024.0**3))) + " GB",
    }


@router.get("/ready")
async def ready():
    return {"status": "ok"}


def get_server_router() -> APIRouter:
    return router
