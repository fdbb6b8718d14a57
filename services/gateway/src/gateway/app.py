from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from jsonschema.exceptions import SchemaError
from pydantic import BaseModel, ConfigDict, Field

from consumer_image_styles import (
    Caller, Consumer, ConsumerNegotiator, ImageStylesEnhancer, build_settings_form, granted_style_ids, output_json_schema,
)
from core_config import get_settings
from core_logging import bind_consumer_id, get_logger, log_stage, record_error
from core_logging.error_codes import ErrorCode
from core_utils.fastapi_bootstrap import setup_service
from core_utils.health import attach_health_routes
from core_utils.identity import identity_from_headers
from core_validator import validate_enhanced_field

from .registry import load_registry

# ---- Configuration & globals ----------------------------------------------
logger = get_logger("gateway")

# ---- Application & router --------------------------------------------------
app    = FastAPI(title="Consumer Image Styles Gateway", version="0.1.0")
router = APIRouter(prefix="/v1")

setup_service(app, "gateway")


class EnhanceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Left untyped: non-object values are passed back unchanged.
    value: Any
    settings: Dict[str, Any] = Field(default_factory=dict)


def _negotiate(negotiator: ConsumerNegotiator, request: Request) -> Optional[Consumer]:
    consumer = negotiator.negotiate(request.headers, request.query_params)
    bind_consumer_id(consumer.id if consumer else None)
    return consumer


def _caller(request: Request) -> Caller:
    return Caller.from_identity(identity_from_headers(request.headers))


def _check_output(data: Any) -> None:
    try:
        ok, errors = validate_enhanced_field(data)
    except (OSError, ValueError, SchemaError) as exc:
        record_error(ErrorCode.output_schema_violation.value, where="gateway.check_output",
                     message=f"output schema unavailable: {exc}", logger=logger, level="WARNING",
                     error_type=exc.__class__.__name__)
        return
    if not ok:
        record_error(ErrorCode.output_schema_violation.value, where="gateway.check_output",
                     message="enhanced value does not match the output schema",
                     logger=logger, level="WARNING", errors=errors)


# ---- Field enhancement -----------------------------------------------------
@router.post("/fields/image/enhance")
def enhance_field(req: EnhanceRequest, request: Request) -> Dict[str, Any]:
    settings = get_settings()
    registry = load_registry(settings)
    consumer = _negotiate(registry.consumers, request)
    enhancer = ImageStylesEnhancer.create(
        req.settings,
        consumer=consumer,
        catalog=registry.catalog,
        repository=registry.files,
        access=registry.access,
        image_extensions=settings.image_extensions,
    )
    data = enhancer.enhance(req.value, _caller(request))

    if settings.validate_enhanced_output and data is not req.value:
        _check_output(data)
    return {"data": data}


@router.get("/fields/image/schema")
def field_schema() -> Dict[str, Any]:
    return output_json_schema()


@router.get("/fields/image/settings-form")
def settings_form() -> Dict[str, Any]:
    registry = load_registry()
    return build_settings_form(registry.catalog)


# ---- Consumers ---------------------------------------------------------------
@router.get("/consumers/current/image-styles")
def current_consumer_styles(request: Request) -> Dict[str, Any]:
    registry = load_registry()
    consumer = _negotiate(registry.consumers, request)
    style_ids = granted_style_ids(consumer, registry.catalog)
    log_stage(logger, "consumer", "negotiated",
              consumer=consumer.id if consumer else None, style_count=len(style_ids))
    return {
        "consumer": {"id": consumer.id, "label": consumer.label} if consumer else None,
        "image_style_ids": style_ids,
    }


app.include_router(router)

attach_health_routes(
    app,
    checks={
        "liveness": lambda: True,
        "readiness": lambda: {"ready": load_registry().loaded},
    },
)
