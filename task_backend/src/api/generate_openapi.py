"""
Utility script to generate and write the OpenAPI schema for the FastAPI app.

This script imports the FastAPI application instance and serializes its OpenAPI
schema to the interfaces/openapi.json file so that API clients and documentation
tools can consume a stable schema without running the server.

Usage:
    python -m src.api.generate_openapi [output-path]

Notes:
- The script ensures every tag in ``openapi_tags`` is present in the OpenAPI tags metadata.
- Default output file path is relative to the container root: interfaces/openapi.json
- Importing the app needs DATABASE_URL and JWT_SECRET to be set.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from .main import app, openapi_tags

logger = logging.getLogger(__name__)


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the OpenAPI schema contains the expected tags metadata. This does not
    override existing tag definitions unless missing.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


def default_output_path() -> str:
    """<container_root>/interfaces/openapi.json"""
    script_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))  # points to .../src
    container_root = os.path.dirname(script_dir)
    return os.path.join(container_root, "interfaces", "openapi.json")


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Generate the OpenAPI schema file and return the written file path."""
    schema = app.openapi()
    _ensure_tags(schema)

    path = out_path or default_output_path()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to %s", path)
    return path


def main() -> None:
    generate_openapi(sys.argv[1] if len(sys.argv) > 1 else None)


if __name__ == "__main__":
    main()
