"""Status and feature-flag routes used by the UI to grey out controls."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from vexcel.api.dependencies import get_app_settings, get_cloud_store, get_remote_store
from vexcel.core.config import ApiKeyStatus, FeatureFlags, Settings
from vexcel.core.logging import get_logger, log_context
from vexcel.core.metrics import metrics_response
from vexcel.models.dto import ApiKeyStatusResponse, StoreStatusResponse
from vexcel.stores.cloud import CloudEditStoreClient
from vexcel.stores.remote import RemoteFileStoreClient

logger = get_logger(__name__)

router = APIRouter()


def _key_status(name: str, status: ApiKeyStatus, settings: Settings) -> ApiKeyStatusResponse:
    logger.info(
        "%s key status checked",
        name,
        extra=log_context(has_api_key=status.has_api_key, key_length=status.key_length),
    )
    return ApiKeyStatusResponse(
        has_api_key=status.has_api_key,
        key_length=status.key_length,
        environment=settings.environment,
    )


@router.get("/status/openai", response_model=ApiKeyStatusResponse, summary="Is the OpenAI key configured")
def openai_status(settings: Settings = Depends(get_app_settings)) -> ApiKeyStatusResponse:
    return _key_status("openai", FeatureFlags.from_env().openai, settings)


@router.get("/status/elevenlabs", response_model=ApiKeyStatusResponse, summary="Is the ElevenLabs key configured")
def elevenlabs_status(settings: Settings = Depends(get_app_settings)) -> ApiKeyStatusResponse:
    return _key_status("elevenlabs", FeatureFlags.from_env().elevenlabs, settings)


@router.get("/status/stores", response_model=StoreStatusResponse, summary="Reachability of the file stores")
def stores_status(
    remote: RemoteFileStoreClient = Depends(get_remote_store),
    cloud: CloudEditStoreClient = Depends(get_cloud_store),
) -> StoreStatusResponse:
    cloud_status = cloud.status()
    return StoreStatusResponse(
        remote_healthy=remote.health(),
        cloud_enabled=cloud_status.enabled,
        cloud_message=cloud_status.message,
    )


@router.get("/metrics", summary="Prometheus metrics")
def get_metrics():
    return metrics_response()


__all__ = ["router"]
