"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends
from starlette.requests import HTTPConnection

from whisper_relay.services.container import RelayServices
from whisper_relay.services.delivery import DeliveryGateway


def get_relay_services(connection: HTTPConnection) -> RelayServices:
    """Return the relay services built at application startup.

    Works for both HTTP requests and WebSocket connections.
    """
    return connection.app.state.relay


def get_delivery_gateway(
    services: Annotated[RelayServices, Depends(get_relay_services)],
) -> DeliveryGateway:
    return services.gateway


# Type aliases for dependency injection
RelayServicesDep = Annotated[RelayServices, Depends(get_relay_services)]
DeliveryGatewayDep = Annotated[DeliveryGateway, Depends(get_delivery_gateway)]
