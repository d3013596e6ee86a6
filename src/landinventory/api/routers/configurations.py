"""
Configurations Router

Endpoints for saving, applying and managing land layout configurations.
"""
from typing import List

from fastapi import APIRouter, Depends, Query, status

from src.landinventory.api.dependencies import get_engine_service
from src.landinventory.api.schemas import (
    ConfigurationCreate,
    ConfigurationCreated,
    ConfigurationRename,
    ConfigurationResponse,
    OperationResult,
)
from src.landinventory.services.engine import LandInventoryEngine

router = APIRouter(prefix="/api/v1", tags=["configurations"])


@router.get("/properties/{property_id}/configurations", response_model=List[ConfigurationResponse])
def list_configurations(property_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    """
    List configurations of a property, newest first.

    Payloads are omitted; fetch a single configuration to read one.
    """
    return engine.list_configurations(property_id)


@router.post(
    "/properties/{property_id}/configurations",
    response_model=ConfigurationCreated,
    status_code=status.HTTP_201_CREATED,
)
def save_configuration(
    property_id: str,
    request: ConfigurationCreate,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    """Snapshot the current layout as the property's active configuration."""
    return ConfigurationCreated(id=engine.save_configuration(property_id, request.configuration_name))


@router.get("/configurations/{config_id}", response_model=ConfigurationResponse)
def get_configuration(
    config_id: str,
    include_payload: bool = Query(True, description="Include the blocks payload"),
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    return engine.get_configuration(config_id, include_payload=include_payload)


@router.post("/configurations/{config_id}/apply", response_model=OperationResult)
def apply_configuration(config_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    """
    Replace the property's blocks and plots with the configuration's layout.

    Plots receive new identifiers.
    """
    return OperationResult(success=engine.apply_configuration(config_id))


@router.post(
    "/configurations/{config_id}/duplicate",
    response_model=ConfigurationCreated,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_configuration(
    config_id: str,
    request: ConfigurationRename,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    return ConfigurationCreated(id=engine.duplicate_configuration(config_id, request.configuration_name))


@router.patch("/configurations/{config_id}", response_model=ConfigurationResponse)
def rename_configuration(
    config_id: str,
    request: ConfigurationRename,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    return engine.rename_configuration(config_id, request.configuration_name)


@router.delete("/configurations/{config_id}", response_model=OperationResult)
def delete_configuration(config_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    return OperationResult(success=engine.delete_configuration(config_id))
