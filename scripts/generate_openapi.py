#!/usr/bin/env python3
"""
OpenAPI specification generator for the quote service.

Every handler module owns its own Powertools resolver. This script collects the
OpenAPI schema of each resolver and merges them into one document describing
the whole API.
"""

import argparse
import importlib
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import yaml

HANDLER_MODULES = [
    "quote_service.handlers.quotes_handler",
    "quote_service.handlers.draft_orders_handler",
    "quote_service.handlers.files_handler",
    "quote_service.handlers.notifications_handler",
    "quote_service.handlers.health_handler",
]

API_TITLE = "Custom Fabrication Quote API"
API_VERSION = "1.0.0"


def get_openapi_spec() -> Dict[str, Any]:
    """
    Generate the merged OpenAPI specification from all handler resolvers.

    Returns:
        OpenAPI specification dictionary
    """
    sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

    from quote_service.handlers.utils.rest_api_resolver import (
        DRAFT_ORDERS_TAG,
        FILES_TAG,
        HEALTH_TAG,
        NOTIFICATIONS_TAG,
        QUOTES_TAG,
    )

    tags = [QUOTES_TAG, DRAFT_ORDERS_TAG, FILES_TAG, NOTIFICATIONS_TAG, HEALTH_TAG]
    merged: Dict[str, Any] = {}

    for module_name in HANDLER_MODULES:
        module = importlib.import_module(module_name)
        schema = json.loads(module.app.get_openapi_json_schema(
            title=API_TITLE,
            version=API_VERSION,
            tags=tags,
        ))
        if not merged:
            merged = schema
            continue
        merged.setdefault("paths", {}).update(schema.get("paths", {}))
        schemas = schema.get("components", {}).get("schemas", {})
        merged.setdefault("components", {}).setdefault("schemas", {}).update(schemas)

    return enhance_openapi_spec(merged)


def enhance_openapi_spec(spec: Dict[str, Any]) -> Dict[str, Any]:
    """
    Enhance the OpenAPI specification with additional metadata.

    Args:
        spec: Base OpenAPI specification

    Returns:
        Enhanced OpenAPI specification
    """
    spec["info"].update({
        "title": API_TITLE,
        "description": """
        Quote workflow for custom fabrication orders, backed by the Shopify Admin API.

        ## Resources

        - **Quotes**: quote records stored as metaobjects
        - **DraftOrders**: quote submission, staff pricing, invoices and order status
        - **Files**: staged uploads and downloads of model files
        - **Notifications**: quote notification emails

        ## Error Codes

        - `400` - Validation error (missing parameters, malformed JSON or email)
        - `404` - Quote, draft order or file not found
        - `422` - Platform rejected the mutation (`userErrors`)
        - `202` - File still processing on the platform
        - `502` - Platform or mail provider failure, body carries `degraded: true`
        - `503` - Service not configured, body carries `degraded: true`
        """,
        "version": API_VERSION,
    })

    spec["components"] = spec.get("components") or {}
    add_additional_schemas(spec)
    return spec


def add_additional_schemas(spec: Dict[str, Any]) -> None:
    """Add the error envelope shared by every handler."""
    schemas = spec["components"].setdefault("schemas", {})
    schemas.update({
        "ErrorResponse": {
            "type": "object",
            "description": "Error envelope returned by every handler",
            "properties": {
                "success": {"type": "boolean", "enum": [False]},
                "error": {"type": "string", "description": "Machine readable error code"},
                "message": {"type": "string"},
                "error_id": {"type": "string", "format": "uuid"},
                "timestamp": {"type": "string", "format": "date-time"},
                "degraded": {"type": "boolean"},
                "retry_after": {"type": "integer"},
                "field_errors": {"type": "array", "items": {"type": "object"}},
                "errors": {"type": "array", "items": {"type": "object"}},
            },
            "required": ["success", "error", "message", "error_id"],
        },
        "OrderStatusCode": {
            "type": "string",
            "enum": ["pending", "quoted", "pending_payment", "partially_paid", "paid", "fulfilled"],
            "description": "Derived status of a quote",
        },
    })


def validate_openapi_spec(spec: Dict[str, Any]) -> bool:
    """
    Validate the OpenAPI specification.

    Args:
        spec: OpenAPI specification to validate

    Returns:
        True if valid, False otherwise
    """
    for field in ["openapi", "info", "paths"]:
        if field not in spec:
            print(f"Error: Missing required field '{field}' in OpenAPI spec")
            return False

    for field in ["title", "version"]:
        if field not in spec["info"]:
            print(f"Error: Missing required field 'info.{field}' in OpenAPI spec")
            return False

    openapi_version = spec["openapi"]
    if not openapi_version.startswith("3."):
        print(f"Warning: OpenAPI version '{openapi_version}' is not 3.x")

    print("OpenAPI specification validation passed")
    return True


def main():
    """Main function for the OpenAPI generator script."""
    parser = argparse.ArgumentParser(
        description="Generate OpenAPI specification for the quote service"
    )
    parser.add_argument(
        "--format",
        choices=["json", "yaml"],
        default="yaml",
        help="Output format (default: yaml)"
    )
    parser.add_argument(
        "--out-destination",
        default=".",
        help="Output directory (default: current directory)"
    )
    parser.add_argument(
        "--out-filename",
        help="Output filename (default: openapi.{format})"
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the generated specification"
    )

    args = parser.parse_args()

    print("Generating OpenAPI specification...")
    spec = get_openapi_spec()

    spec["info"]["x-generated"] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "generator": "quote-service/openapi-generator",
    }

    if args.validate and not validate_openapi_spec(spec):
        sys.exit(1)

    filename = args.out_filename or f"openapi.{args.format}"
    output_dir = Path(args.out_destination)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / filename

    with open(output_path, "w", encoding="utf-8") as f:
        if args.format == "json":
            json.dump(spec, f, indent=2, ensure_ascii=False)
        else:
            yaml.dump(spec, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    paths = spec.get("paths", {})
    total_operations = sum(
        len([k for k in path_obj.keys() if k in ["get", "post", "put", "patch", "delete"]])
        for path_obj in paths.values()
    )
    print(f"OpenAPI specification written to: {output_path}")
    print(f"Paths: {len(paths)}, operations: {total_operations}")


if __name__ == "__main__":
    main()
