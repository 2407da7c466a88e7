from functools import lru_cache
from pathlib import Path
from typing import Dict

from fastapi import Depends, HTTPException, status

from .config import Settings, get_settings
from .errors import ConfigurationError
from .utils.canon_loader import CanonTable, LanguageRegistry, load_canon_table, load_registry
from .utils.pipeline import Pipeline

# Pipelines keyed by the serialized settings they were built from.
_pipelines: Dict[str, Pipeline] = {}


@lru_cache()
def _canon(assets_path: Path) -> CanonTable:
    return load_canon_table(assets_path)


@lru_cache()
def _registry(assets_path: Path) -> LanguageRegistry:
    return load_registry(assets_path)


def get_canon(settings: Settings = Depends(get_settings)) -> CanonTable:
    return _canon(settings.resolved_assets_path())


def get_registry(settings: Settings = Depends(get_settings)) -> LanguageRegistry:
    return _registry(settings.resolved_assets_path())


def get_pipeline(settings: Settings = Depends(get_settings)) -> Pipeline:
    key = settings.model_dump_json()
    pipeline = _pipelines.get(key)
    if pipeline is None:
        assets_path = settings.resolved_assets_path()
        try:
            pipeline = Pipeline(settings.pipeline_config(), _canon(assets_path), _registry(assets_path))
        except ConfigurationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        _pipelines[key] = pipeline
    return pipeline
