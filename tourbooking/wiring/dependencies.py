from functools import lru_cache
import logging
from pathlib import Path
from typing import Callable

from tourbooking.core.config import settings
from tourbooking.application.ports.cart_gateway import CartGatewayPort
from tourbooking.application.ports.product_catalog import ProductCatalogPort
from tourbooking.application.use_cases.booking import BookingOrchestrator
from tourbooking.infrastructure.magento.cart_gateway import MagentoCartGateway
from tourbooking.infrastructure.magento.catalog import MagentoProductCatalog
from tourbooking.infrastructure.magento.graphql_client import MagentoGraphQLClient
from tourbooking.infrastructure.mock.mock_catalog import MockProductCatalog
from tourbooking.infrastructure.mock.mock_gateway import MockCartGateway
from tourbooking.infrastructure.store.json_store import JsonCartIdStore
from tourbooking.infrastructure.store.memory_store import BookingSessionRegistry


def _use_mock_backend() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


@lru_cache
def get_graphql_client() -> MagentoGraphQLClient:
    return MagentoGraphQLClient()


@lru_cache
def get_cart_gateway() -> CartGatewayPort:
    logger = logging.getLogger(__name__)
    if _use_mock_backend():
        logger.info("Using MockCartGateway (ENV=dev/local)")
        return MockCartGateway()
    logger.info("Using MagentoCartGateway", extra={"endpoint": get_graphql_client().endpoint})
    return MagentoCartGateway(client=get_graphql_client())


@lru_cache
def get_product_catalog() -> ProductCatalogPort:
    if _use_mock_backend():
        return MockProductCatalog()
    return MagentoProductCatalog(client=get_graphql_client())


@lru_cache
def get_session_registry() -> BookingSessionRegistry:
    return BookingSessionRegistry(max_sessions=settings.MAX_BOOKING_SESSIONS)


def get_cart_id_store(session_id: str) -> JsonCartIdStore:
    return JsonCartIdStore(Path(settings.CART_STORE_DIR) / f"{session_id}.json")


def build_orchestrator(session_id: str) -> BookingOrchestrator:
    return BookingOrchestrator(
        gateway=get_cart_gateway(),
        cart_id_store=get_cart_id_store(session_id),
        default_allowed_seats=settings.DEFAULT_ALLOWED_SEATS,
        date_option_title=settings.TOUR_DATE_OPTION_TITLE,
        contact_path=settings.CONTACT_PAGE_PATH,
        session_id=session_id,
    )


def get_orchestrator_factory() -> Callable[[str], BookingOrchestrator]:
    return build_orchestrator
