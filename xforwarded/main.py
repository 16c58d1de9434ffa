import logging

from fastapi import FastAPI, Request

from xforwarded.config import Settings, get_settings
from xforwarded.filters import build_request_filter
from xforwarded.middleware import XForwardedHeaderMiddleware
from xforwarded.schemas import EffectiveUriRead, HealthRead

logger = logging.getLogger('xforwarded')


def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = get_settings()
    request_filter = build_request_filter(settings)

    app = FastAPI(title=settings.app_name, version='1.0.0')
    app.add_middleware(XForwardedHeaderMiddleware, request_filter=request_filter)

    @app.get('/healthz', response_model=HealthRead)
    def healthcheck() -> HealthRead:
        return HealthRead()

    @app.get('/effective-uri', response_model=EffectiveUriRead)
    def effective_uri(request: Request) -> EffectiveUriRead:
        return EffectiveUriRead(
            uri=str(request.url),
            scheme=request.url.scheme,
            host=request.url.hostname,
            port=request.url.port,
            peer=request.client.host if request.client else None,
        )

    logger.info('X-Forwarded header filter API ready')
    return app


settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)

app = create_app(settings)
