import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tourbooking.api.v1.booking import router as booking_router
from tourbooking.core.config import settings
from tourbooking.wiring.dependencies import get_graphql_client

_CONTEXT_KEYS = ("session_id", "step", "cart_id", "sku", "operation", "order_number", "reason", "error")


class ContextFormatter(logging.Formatter):
    """Appends booking context passed via `extra=` as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        pairs = [
            f"{key}={getattr(record, key)}"
            for key in _CONTEXT_KEYS
            if getattr(record, key, None) not in (None, "")
        ]
        return f"{base} | {' '.join(pairs)}" if pairs else base


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # only a real backend ever built the shared client
    if get_graphql_client.cache_info().currsize:
        await get_graphql_client().aclose()


configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Tour Booking", version="1.0.0", lifespan=lifespan)

app.include_router(booking_router, prefix="/api/v1", tags=["booking"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
