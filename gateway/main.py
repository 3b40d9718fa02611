"""
Main application entry point for the Soroban read-only gateway.

This module defines the FastAPI application and its endpoints: read-only
contract invocation through transaction simulation, and a raw JSON-RPC
relay to the same Soroban RPC node. Components are built once from
:class:`Settings` at startup and handed to each request through dependencies.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gateway.config import Settings, configure_logging
from gateway.decoder import encode_result
from gateway.encoder import encode_parameters
from gateway.errors import GatewayError, NetworkError, SimulationError, UnexpectedError, ValidationError
from gateway.models import ServiceIdentity
from gateway.relay import CORS_HEADERS, RpcRelay
from gateway.schemas import ErrorResponse, ReadOnlyCallRequest, ReadOnlyCallResponse
from gateway.simulator import TransactionSimulator

logger = logging.getLogger(__name__)

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_simulator(request: Request) -> TransactionSimulator:
    return request.app.state.simulator


def get_relay(request: Request) -> RpcRelay:
    return request.app.state.relay


def _truncate(contract_id: Any) -> str:
    return f"{str(contract_id)[:8]}..." if contract_id else "none"


def _error_response(exc: GatewayError, settings: Settings) -> JSONResponse:
    payload = ErrorResponse(error=exc.error, message=exc.public_message(settings.is_development))
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


async def _read_call_request(request: Request) -> ReadOnlyCallRequest:
    """Parse the request body leniently; an empty or non-object body has no fields."""
    raw = await request.body()
    payload = {}
    if raw.strip():
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise ValidationError("request body is not valid JSON") from exc
    if not isinstance(payload, dict):
        payload = {}
    return ReadOnlyCallRequest.model_validate(payload)


class PathExemptCORSMiddleware(CORSMiddleware):
    """CORS middleware that leaves some paths to set their own CORS headers."""

    def __init__(self, app, exempt_paths=(), **kwargs):
        super().__init__(app, **kwargs)
        self.exempt_paths = frozenset(exempt_paths)

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["path"] in self.exempt_paths:
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


@router.post(
    "/contract/readonly",
    response_model=ReadOnlyCallResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ReadOnlyCallRequest.model_json_schema(by_alias=True)}},
        }
    },
)
async def call_readonly(
    request: Request,
    simulator: TransactionSimulator = Depends(get_simulator),
    settings: Settings = Depends(get_settings),
):
    """
    Execute a read-only contract function by simulating it.

    The invocation is wrapped in an unsigned transaction sourced from the
    service account and sent to ``simulateTransaction``; nothing is signed
    or submitted. The return value is sent back as base64 XDR.

    The body is parsed here rather than by FastAPI so that every malformed
    request gets the same 400 error shape. Every failure is mapped to
    exactly one JSON error response here.
    """
    started = time.perf_counter()
    call = ReadOnlyCallRequest()
    function_name = "unknown"

    try:
        call = await _read_call_request(request)
        function_name = str(call.function_name or "unknown")
        logger.info(
            "[Contract ReadOnly] %s called contract=%s params=%s client=%s",
            function_name,
            _truncate(call.contract_id),
            len(call.parameters) if isinstance(call.parameters, list) else "none",
            request.client.host if request.client else "unknown",
        )

        # 1. Validation: fail closed before touching the network.
        call = call.validated()

        # 2. Encode, build and simulate.
        arguments = encode_parameters(call.parameters)
        outcome = await simulator.simulate(call.contract_id, call.function_name, arguments)
        if outcome.failed:
            raise SimulationError(outcome.error)

        # 3. Serialize the return value for transport.
        result = encode_result(outcome.retval)
    except GatewayError as exc:
        duration_ms = (time.perf_counter() - started) * 1000
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "[Contract ReadOnly] %s failed contract=%s duration=%.0fms error=%s: %s",
            function_name,
            _truncate(call.contract_id),
            duration_ms,
            exc.__class__.__name__,
            exc.message,
        )
        return _error_response(exc, settings)
    except Exception as exc:
        duration_ms = (time.perf_counter() - started) * 1000
        logger.exception(
            "[Contract ReadOnly] %s error contract=%s duration=%.0fms",
            function_name,
            _truncate(call.contract_id),
            duration_ms,
        )
        return _error_response(UnexpectedError(str(exc) or exc.__class__.__name__), settings)

    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "[Contract ReadOnly] %s completed duration=%.0fms result_size=%d",
        function_name,
        duration_ms,
        len(result) if result else 0,
    )
    return ReadOnlyCallResponse(success=True, result=result)


@router.post("/rpc")
async def relay_rpc(request: Request, relay: RpcRelay = Depends(get_relay)):
    """Forward a JSON-RPC body to the Soroban RPC node and mirror its answer."""
    body = await request.body()
    try:
        upstream = await relay.forward(request.method, body, request.headers.get("content-type"))
    except NetworkError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Proxy request failed", "message": exc.message},
            headers=CORS_HEADERS,
        )
    return Response(
        content=upstream.body,
        status_code=upstream.status_code,
        media_type=upstream.content_type,
        headers=CORS_HEADERS,
    )


@router.options("/rpc")
def relay_preflight():
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)


@router.get("/health")
def health_check(settings: Settings = Depends(get_settings)):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application with components wired from ``settings``."""
    settings = settings or Settings.from_env()

    application = FastAPI(title="Soroban Read-Only Gateway")
    application.state.settings = settings
    application.state.simulator = TransactionSimulator(settings, ServiceIdentity.from_settings(settings))
    application.state.relay = RpcRelay(settings.rpc_url, timeout=settings.relay_timeout)

    # the relay answers every origin with its own headers
    application.add_middleware(
        PathExemptCORSMiddleware,
        exempt_paths=("/rpc",),
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    settings: Settings = app.state.settings
    configure_logging(settings)
    logger.info("Gateway listening on %s:%d (environment=%s)", settings.host, settings.port, settings.environment)
    identity = app.state.simulator.identity
    if identity is None:
        logger.warning("SERVICE_ACCOUNT_SECRET_KEY not set; contract calls will fail until it is configured")
    elif identity.problem:
        logger.error("%s; contract calls will fail until it is fixed", identity.problem)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
