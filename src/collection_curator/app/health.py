from __future__ import annotations

from fastapi import APIRouter

from collection_curator import __version__
from collection_curator.settings import get_settings

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "version": __version__, "adapters": get_settings().runtime_adapters}
