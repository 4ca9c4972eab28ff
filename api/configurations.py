from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import to_http
from database import get_db
from schemas.configuration import (
    ChecklistRequest,
    ConfigurationCreate,
    ConfigurationUpdate,
    InstrumentConfiguration,
)
from schemas.enums import InstrumentType
from services.configuration_store import ConfigurationStore, SqlConfigurationStore
from services.document_checklist import build_checklist
from services.exceptions import RiskEngineError

router = APIRouter(prefix="/api/configurations", tags=["configurations"])


def get_store(db: AsyncSession = Depends(get_db)) -> ConfigurationStore:
    return SqlConfigurationStore(db)


def _config_to_response(c: InstrumentConfiguration) -> dict[str, Any]:
    """Serialize configuration with camelCase keys for frontend."""
    return c.model_dump(mode="json", by_alias=True)


@router.get("", response_model=list[dict])
async def list_configurations(
    instrument_type: InstrumentType | None = Query(None, alias="instrumentType"),
    active_only: bool = Query(False, alias="activeOnly"),
    store: ConfigurationStore = Depends(get_store),
):
    configs = await store.list(instrument_type=instrument_type, active_only=active_only)
    return [_config_to_response(c) for c in configs]


@router.get("/{config_id}", response_model=dict)
async def get_configuration(config_id: str, store: ConfigurationStore = Depends(get_store)):
    try:
        return _config_to_response(await store.get(config_id))
    except RiskEngineError as e:
        raise to_http(e) from e


@router.post("", response_model=dict, status_code=201)
async def create_configuration(body: ConfigurationCreate, store: ConfigurationStore = Depends(get_store)):
    try:
        config = await store.create(body.name, body.instrument_type)
    except RiskEngineError as e:
        raise to_http(e) from e
    return _config_to_response(config)


@router.patch("/{config_id}", response_model=dict)
async def update_configuration(
    config_id: str, body: ConfigurationUpdate, store: ConfigurationStore = Depends(get_store)
):
    fields = body.model_dump(exclude_unset=True, exclude={"expected_version"})
    try:
        config = await store.update(config_id, fields, expected_version=body.expected_version)
    except RiskEngineError as e:
        raise to_http(e) from e
    return _config_to_response(config)


@router.delete("/{config_id}", status_code=204)
async def delete_configuration(config_id: str, store: ConfigurationStore = Depends(get_store)):
    try:
        await store.delete(config_id)
    except RiskEngineError as e:
        raise to_http(e) from e
    return None


@router.post("/{config_id}/toggle-active", response_model=dict)
async def toggle_configuration(config_id: str, store: ConfigurationStore = Depends(get_store)):
    try:
        return _config_to_response(await store.toggle_active(config_id))
    except RiskEngineError as e:
        raise to_http(e) from e


@router.post("/{config_id}/default", response_model=dict)
async def make_default(config_id: str, store: ConfigurationStore = Depends(get_store)):
    try:
        return _config_to_response(await store.set_default(config_id))
    except RiskEngineError as e:
        raise to_http(e) from e


@router.post("/{config_id}/reset", response_model=dict)
async def reset_configuration(config_id: str, store: ConfigurationStore = Depends(get_store)):
    try:
        return _config_to_response(await store.reset_to_defaults(config_id))
    except RiskEngineError as e:
        raise to_http(e) from e


@router.post("/{config_id}/checklist", response_model=dict)
async def document_checklist(
    config_id: str, body: ChecklistRequest, store: ConfigurationStore = Depends(get_store)
):
    try:
        config = await store.get(config_id)
    except RiskEngineError as e:
        raise to_http(e) from e
    return build_checklist(config, body.submitted_document_ids).model_dump(mode="json", by_alias=True)
