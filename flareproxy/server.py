import asyncio
import logging
from typing import List, Optional

import uvicorn
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from flareproxy.config import AdapterConfig
from flareproxy.direct.route import create_direct_router
from flareproxy.proxy.route import install_forward_proxy
from flareproxy.upstream import UpstreamTranslator
from flareproxy.vars import LOG_LEVEL, OTLP_ENDPOINT, OTLP_HEADERS, SERVICE_NAME

logger = logging.getLogger("uvicorn.error")

# Registered once per process; prometheus_client rejects duplicate metric names.
app_info = Info("fastapi_app_info", "Application Info")
app_info.info({"app_name": SERVICE_NAME})


def configure_tracing() -> TracerProvider:
    tracer_provider = TracerProvider(
        resource=Resource.create({"service.name": SERVICE_NAME})
    )
    if OTLP_ENDPOINT:
        otlp_exporter = OTLPSpanExporter(
            endpoint=OTLP_ENDPOINT,
            headers=((OTLP_HEADERS).split(",") if OTLP_HEADERS else None),
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    trace.set_tracer_provider(tracer_provider)
    return tracer_provider


def create_direct_app(translator: UpstreamTranslator) -> FastAPI:
    """Application serving ``/<domain>/<path>`` requests.

    ``/metrics`` is registered before the catch-all route, so it shadows a
    target domain of that name.
    """
    app = FastAPI()
    Instrumentator().instrument(app).expose(app)
    FastAPIInstrumentor.instrument_app(app)
    app.include_router(create_direct_router(translator))
    return app


def create_proxy_app(translator: UpstreamTranslator) -> FastAPI:
    """Application answering forward-proxy requests."""
    app = FastAPI()
    install_forward_proxy(app, translator)
    FastAPIInstrumentor.instrument_app(app)
    return app


def build_servers(
    config: AdapterConfig, translator: UpstreamTranslator
) -> List[uvicorn.Server]:
    servers = [
        uvicorn.Server(
            uvicorn.Config(
                create_direct_app(translator),
                host=config.host,
                port=config.port,
                log_level=LOG_LEVEL,
            )
        )
    ]
    if config.proxy_enabled:
        # h11 passes CONNECT and absolute-form targets through untouched.
        servers.append(
            uvicorn.Server(
                uvicorn.Config(
                    create_proxy_app(translator),
                    host=config.host,
                    port=config.proxy_port,
                    log_level=LOG_LEVEL,
                    http="h11",
                )
            )
        )
    return servers


async def serve(config: AdapterConfig, translator: Optional[UpstreamTranslator] = None):
    translator = translator or UpstreamTranslator(config)
    servers = build_servers(config, translator)

    logger.info(f"FlareProxy adapter running on port {config.port}")
    if config.proxy_enabled:
        logger.info(f"FlareProxy forward proxy running on port {config.proxy_port}")
    else:
        logger.info("PROXY_PORT not set, forward proxy disabled")
    logger.info(f"FlareSolverr URL: {config.flaresolverr_url}")

    try:
        await asyncio.gather(*(server.serve() for server in servers))
    finally:
        await translator.aclose()


def main():
    config = AdapterConfig.from_environ()
    configure_tracing()
    asyncio.run(serve(config))


if __name__ == "__main__":
    main()
