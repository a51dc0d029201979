#!/usr/bin/env python3
"""
Regenerate the machine-readable contracts for the web memory pipeline.

Writes under src/specs/:
 - schemas/<name>.json and .yaml for every model in SCHEMA_MODELS
 - openapi.json and openapi.yaml for the post-created event endpoint

Run after changing any pydantic model:  python scripts/generate_specs.py
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict

import yaml


ROOT = Path(__file__).resolve().parents[1]
SPECS_DIR = ROOT / "src" / "specs"
SCHEMAS_DIR = SPECS_DIR / "schemas"

sys.path.insert(0, str(ROOT))

from src.specs.models import SCHEMA_MODELS, JobDocument, WebMemoryDocument  # noqa: E402


def dump(obj: Dict[str, Any], json_path: Path) -> None:
    """Write ``obj`` as pretty JSON plus a YAML twin next to it."""
    json_path.parent.mkdir(parents=True, exist_ok=True)
    json_path.write_text(json.dumps(obj, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    json_path.with_suffix(".yaml").write_text(yaml.safe_dump(obj, sort_keys=False), encoding="utf-8")


def generate_model_schemas() -> int:
    for filename, model in SCHEMA_MODELS.items():
        dump(model.model_json_schema(), SCHEMAS_DIR / filename)
    return len(SCHEMA_MODELS)


def _plain_text(description: str) -> Dict[str, Any]:
    return {"description": description, "content": {"text/plain": {"schema": {"type": "string"}}}}


def build_openapi() -> Dict[str, Any]:
    return {
        "openapi": "3.0.3",
        "info": {
            "title": "Post Web Memory Functions API",
            "version": "0.1.0",
            "description": "Receives post-created change events and queues web memory jobs.",
        },
        "servers": [{"url": "http://localhost:7071", "description": "Local Functions host (empty routePrefix)"}],
        "paths": {
            "/": {
                "post": {
                    "summary": "Queue web memory generation for a newly created post",
                    "operationId": "postCreatedEvent",
                    "requestBody": {
                        "required": True,
                        "description": (
                            "Raw event payload containing a document reference "
                            "projects/{project}/databases/(default)/documents/posts/{postId}"
                        ),
                        "content": {"*/*": {"schema": {"type": "string"}}},
                    },
                    "responses": {
                        "200": _plain_text("Handled, or no postId found in the payload"),
                        "500": _plain_text("Handler raised; the event may be redelivered"),
                    },
                }
            }
        },
        # Stored documents, for consumers reading the containers directly
        "components": {
            "schemas": {
                "JobDocument": JobDocument.model_json_schema(),
                "WebMemoryDocument": WebMemoryDocument.model_json_schema(),
            }
        },
    }


def main() -> None:
    count = generate_model_schemas()
    dump(build_openapi(), SPECS_DIR / "openapi.json")
    print(f"Wrote {count} model schemas and openapi.json/.yaml under {SPECS_DIR}")


if __name__ == "__main__":
    main()
