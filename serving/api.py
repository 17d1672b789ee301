"""
FastAPI REST API for the BERT service.

This module exposes a BertService over HTTP. Each endpoint validates the JSON
body, calls the matching service operation and writes the record produced by
its JSON encoder, so the payload is byte-for-byte what record.dump() returns.

Endpoints:
    POST /discriminate - Replaced token detection     Body{text}
    POST /predict      - Masked token prediction      Body{text}
    POST /answer       - Question answering           QABody{question, passage}
    POST /tag          - Token labeling               Body{text}
    POST /classify     - Sequence classification      Body{text}
    POST /te           - Textual entailment           Body{text}
    GET  /health       - Health check endpoint
    GET  /info         - Service information and configuration

    Every POST endpoint accepts ?pretty=true for indented output.

Architecture:
    HTTP Request → FastAPI → Pydantic Validation → BertService → record.dump() → HTTP Response

Error mapping:
    400 InvalidRequestError, 422 body validation, 501 capability not supported
    by the model, 500 serialization or model failure.
"""

import logging
import time
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from ranking import SerializationError

from .bert_service import BertService
from .errors import InvalidRequestError, UnsupportedCapabilityError

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


# ============================================================================
# Pydantic Models (Request/Response Schemas)
# ============================================================================

class Body(BaseModel):
    """Request schema for the single-text capabilities."""

    text: str = Field(..., description="Input text")

    model_config = ConfigDict(
        json_schema_extra={"example": {"text": "The capital of France is [MASK]."}}
    )


class QABody(BaseModel):
    """Request schema for question answering."""

    question: str = Field(..., description="Question to answer")
    passage: str = Field(..., description="Passage the answer is extracted from")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "question": "Where is the Eiffel Tower?",
                "passage": "The Eiffel Tower is a landmark in Paris.",
            }
        }
    )


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    checks: Dict[str, str]


class ServiceInfoResponse(BaseModel):
    """Service information response schema."""

    service_name: str
    version: str
    model: str
    tokenizer: str
    capabilities: List[str]
    ranking: Dict[str, Any]
    serialize_inference: bool


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str
    detail: str
    status_code: int


def _error(status_code: int, error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": str(exc), "status_code": status_code},
    )


def _record_response(record: Any, pretty: bool) -> Response:
    return Response(content=record.dump(pretty=pretty), media_type=JSON_MEDIA_TYPE)


_ERROR_RESPONSES = {
    400: {"description": "Invalid request content", "model": ErrorResponse},
    500: {"description": "Model or serialization failure", "model": ErrorResponse},
    501: {"description": "Capability not supported by the model", "model": ErrorResponse},
}


# ============================================================================
# FastAPI Application
# ============================================================================

def create_app(service: BertService) -> FastAPI:
    """
    Build the HTTP application around an existing service.

    Args:
        service: The service shared with the gRPC transport

    Returns:
        FastAPI application (ASGI)
    """
    app = FastAPI(
        title="BERT Service API",
        description="Question answering, token labeling and classification with BERT models",
        version="1.0.0",
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------------
    # Middleware for Request Logging
    # ------------------------------------------------------------------------

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every request with its status code and duration."""
        start_time = time.time()
        logger.info(f"→ {request.method} {request.url.path}")

        response = await call_next(request)

        duration = (time.time() - start_time) * 1000
        logger.info(
            f"← {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.1f}ms"
        )
        return response

    # ------------------------------------------------------------------------
    # Capability Endpoints
    # ------------------------------------------------------------------------
    # Handlers are plain functions: FastAPI runs them in its threadpool, so
    # model calls never block the event loop and requests run concurrently.

    @app.post("/discriminate", summary="Detect replaced tokens", responses=_ERROR_RESPONSES)
    def discriminate(body: Body, pretty: bool = False) -> Response:
        return _record_response(service.discriminate(body.text), pretty)

    @app.post("/predict", summary="Predict masked tokens", responses=_ERROR_RESPONSES)
    def predict(body: Body, pretty: bool = False) -> Response:
        return _record_response(service.predict(body.text), pretty)

    @app.post("/answer", summary="Answer a question from a passage", responses=_ERROR_RESPONSES)
    def answer(body: QABody, pretty: bool = False) -> Response:
        return _record_response(service.answer(body.question, body.passage), pretty)

    @app.post("/tag", summary="Label tokens", responses=_ERROR_RESPONSES)
    def tag(body: Body, pretty: bool = False) -> Response:
        return _record_response(service.tag(body.text), pretty)

    @app.post("/classify", summary="Classify text", responses=_ERROR_RESPONSES)
    def classify(body: Body, pretty: bool = False) -> Response:
        return _record_response(service.classify(body.text), pretty)

    @app.post("/te", summary="Textual entailment", responses=_ERROR_RESPONSES)
    def textual_entailment(body: Body, pretty: bool = False) -> Response:
        return _record_response(service.textual_entailment(body.text), pretty)

    # ------------------------------------------------------------------------
    # Service Endpoints
    # ------------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse, summary="Health check")
    async def health_check():
        """Return 200 when healthy, 503 otherwise (for load balancers)."""
        health = service.health_check()
        if health["status"] != "healthy":
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health)
        return HealthResponse(**health)

    @app.get("/info", response_model=ServiceInfoResponse, summary="Service information")
    async def service_info() -> ServiceInfoResponse:
        return ServiceInfoResponse(
            service_name="bert-service",
            version="1.0.0",
            **service.get_service_info(),
        )

    # ------------------------------------------------------------------------
    # Error Handlers
    # ------------------------------------------------------------------------

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        logger.warning(f"Invalid request on {request.url.path}: {exc}")
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request", exc)

    @app.exception_handler(UnsupportedCapabilityError)
    async def unsupported_capability_handler(request: Request, exc: UnsupportedCapabilityError):
        logger.warning(f"Unsupported capability on {request.url.path}: {exc}")
        return _error(status.HTTP_501_NOT_IMPLEMENTED, "Not implemented", exc)

    @app.exception_handler(SerializationError)
    async def serialization_error_handler(request: Request, exc: SerializationError):
        logger.error(f"Failed to encode response for {request.url.path}: {exc}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Serialization error", exc)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Model failures and other unhandled errors."""
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", exc)

    return app
