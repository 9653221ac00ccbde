"""JSON-over-HTTP endpoints for the asset manager and download sessions."""

import logging
from typing import Any, Callable, Dict

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from creative_cache.config import Settings, settings as default_settings
from creative_cache.constants import ARCHIVE_FILENAME
from creative_cache.errors import CreativeCacheError, InvalidInputError
from creative_cache.services.archive import ArchiveBuilder
from creative_cache.services.cache import AssetCache, CampaignStorage
from creative_cache.services.object_storage import create_object_storage
from creative_cache.services.sessions import FingerprintLookup, SessionBroker, SessionStorage

logger = logging.getLogger(__name__)


class AppServices:
    """Process-wide collaborators, built once and injected into handlers."""

    def __init__(
        self,
        asset_cache: AssetCache,
        broker: SessionBroker,
        archive_builder: ArchiveBuilder,
        retention_days: int = 30,
    ):
        self.asset_cache = asset_cache
        self.broker = broker
        self.archive_builder = archive_builder
        self.retention_days = retention_days

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "AppServices":
        config = config or default_settings

        asset_cache = AssetCache(
            storage=CampaignStorage(config.database_path),
            object_storage=create_object_storage(config),
            similarity_threshold=config.similarity_threshold,
        )
        broker = SessionBroker(
            storage=SessionStorage(config.database_path),
            lookup=FingerprintLookup(),
            ttl_seconds=config.session_ttl_seconds,
            public_base_url=config.public_base_url,
        )
        return cls(
            asset_cache=asset_cache,
            broker=broker,
            archive_builder=ArchiveBuilder(timeout=config.archive_download_timeout),
            retention_days=config.retention_days,
        )

    def close(self) -> None:
        self.asset_cache.object_storage.close()
        self.archive_builder.close()


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def _optional_number(payload: Dict[str, Any], key: str) -> float | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{key} must be a number")
    return float(value)


# Asset manager actions


def _find_similar(services: AppServices, payload: Dict[str, Any]) -> Dict[str, Any]:
    prompts = payload.get("prompts")
    if not isinstance(prompts, list):
        raise InvalidInputError("prompts must be a list of strings")

    matches = services.asset_cache.find_similar(
        prompts, _optional_number(payload, "similarity_threshold")
    )
    return {
        "success": True,
        "similar_assets": [m.model_dump(mode="json") for m in matches],
        "total_found": len(matches),
        "potential_savings": f"{len(matches)} assets can be reused",
    }


def _reuse_assets(services: AppServices, payload: Dict[str, Any]) -> Dict[str, Any]:
    # Older clients send the mappings under "prompts"
    mappings = payload.get("mappings", payload.get("prompts"))
    if not isinstance(mappings, list):
        raise InvalidInputError("mappings must be a list")
    campaign_id = payload.get("campaignId")
    if not isinstance(campaign_id, str):
        raise InvalidInputError("campaignId is required")

    assets = services.asset_cache.reuse_assets(
        campaign_id, mappings, mode=payload.get("mode", "replace")
    )
    return {
        "success": True,
        "reused_count": len(assets),
        "assets": [a.model_dump(mode="json", exclude_none=True) for a in assets],
        "message": f"Successfully reused {len(assets)} existing assets",
    }


def _cleanup_unused(services: AppServices, payload: Dict[str, Any]) -> Dict[str, Any]:
    retention_days = payload.get("retention_days", services.retention_days)
    if isinstance(retention_days, bool) or not isinstance(retention_days, int):
        raise InvalidInputError("retention_days must be an integer")

    result = services.asset_cache.cleanup_unused(retention_days)
    return {
        "success": True,
        "deleted_count": result.deleted_count,
        "deleted_assets": result.deleted_assets,
        "message": f"Cleaned up {result.deleted_count} unused assets",
    }


def _get_stats(services: AppServices, payload: Dict[str, Any]) -> Dict[str, Any]:
    stats = services.asset_cache.get_stats()
    return {
        "success": True,
        "stats": {
            "total_campaigns": stats.total_campaigns,
            "total_images": stats.total_images,
            "total_videos": stats.total_videos,
            "avg_images_per_campaign": stats.avg_images_per_campaign,
            "storage_usage_mb": f"~{stats.storage_usage_mb}",
        },
    }


ACTIONS: Dict[str, Callable[[AppServices, Dict[str, Any]], Dict[str, Any]]] = {
    "find_similar": _find_similar,
    "reuse_assets": _reuse_assets,
    "cleanup_unused": _cleanup_unused,
    "get_stats": _get_stats,
}


def create_app(services: AppServices | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        services: Collaborators to inject (default: built from settings)
    """
    app = FastAPI(title="creative-cache")
    app.state.services = services or AppServices.from_settings()

    @app.exception_handler(CreativeCacheError)
    async def _handle_error(request: Request, exc: CreativeCacheError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def _handle_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/asset-manager")
    def asset_manager(
        payload: Dict[str, Any] = Body(...),
        services: AppServices = Depends(get_services),
    ) -> Dict[str, Any]:
        action = payload.get("action")
        logger.info(f"Asset manager action: {action} (campaign={payload.get('campaignId')})")

        handler = ACTIONS.get(action) if isinstance(action, str) else None
        if handler is None:
            raise InvalidInputError(f"Unknown action: {action}")
        return handler(services, payload)

    @app.post("/download-sessions")
    def create_session(
        bundle: Dict[str, Any] = Body(...),
        services: AppServices = Depends(get_services),
    ) -> Dict[str, str]:
        token = services.broker.create_or_get(bundle)
        return {
            "session_token": token,
            "download_url": services.broker.build_download_url(token),
        }

    @app.get("/download-sessions")
    def get_session(
        session: str | None = Query(default=None),
        services: AppServices = Depends(get_services),
    ) -> Dict[str, Any]:
        return services.broker.get(session or "")

    @app.get("/download-zip")
    def download_zip(
        session: str | None = Query(default=None),
        services: AppServices = Depends(get_services),
    ) -> Response:
        bundle = services.broker.get(session or "")
        content = services.archive_builder.build(bundle)
        return Response(
            content=content,
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'},
        )

    return app
