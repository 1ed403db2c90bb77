"""FastAPI application that exports drawings as G-code files."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ..config import ConfigError, PlotConfig
from ..document import GCodeDocument
from ..mapping import StateError
from ..svg_loader import DEFAULT_TOLERANCE, UnsupportedCommandError

logger = logging.getLogger(__name__)


def _extent(payload: Dict[str, Any]) -> tuple[float, float]:
    try:
        width, height = payload["extent"]
        return float(width), float(height)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("extent must be a [width, height] pair") from exc


def _list_field(spec: Dict[str, Any], key: str, index: int) -> List[Any]:
    value = spec.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"layers[{index}].{key} must be a list")
    return value


def build_document(payload: Dict[str, Any]) -> tuple[GCodeDocument, List[Dict[str, Any]]]:
    """Build a document from a JSON payload; returns it with any diagnostics."""

    config = PlotConfig.from_mapping(payload.get("config") or {})
    strict = payload.get("strict", False)
    if not isinstance(strict, bool):
        raise ValueError("strict must be true or false")
    doc = GCodeDocument(
        config,
        tolerance=float(payload.get("tolerance", DEFAULT_TOLERANCE)),
        strict=strict,
    )
    doc.set_logical_extent(*_extent(payload))

    diagnostics: List[Dict[str, Any]] = []
    layers = payload.get("layers") or []
    for index, spec in enumerate(layers):
        if not isinstance(spec, dict):
            raise ValueError(f"layers[{index}] must be an object")
        name = str(spec.get("name", ""))
        if index == 0:
            doc.layer.name = name
        else:
            doc.add_layer(name)
        doc.add_polylines(_list_field(spec, "polylines", index))
        for d in _list_field(spec, "paths", index):
            if not isinstance(d, str):
                raise ValueError(f"layers[{index}].paths must hold path data strings")
            for diag in doc.add_svg_path(d):
                diagnostics.append({"layer": name, "index": diag.index, "code": diag.code, "reason": diag.reason})
    return doc, diagnostics


def create_app() -> FastAPI:
    app = FastAPI(title="plotgcode export server")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/config/defaults")
    def config_defaults() -> Dict[str, Any]:
        return PlotConfig().to_dict()

    @app.post("/api/gcode")
    def export_gcode(payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            doc, diagnostics = build_document(payload)
        except (ConfigError, StateError, UnsupportedCommandError, ValueError, TypeError, IndexError) as exc:
            logger.info("Rejected export request: %s", exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        files = [{"fileName": f.file_name, "content": f.content} for f in doc.export()]
        return {"files": files, "diagnostics": diagnostics}

    return app


app = create_app()


__all__ = ["app", "build_document", "create_app"]
