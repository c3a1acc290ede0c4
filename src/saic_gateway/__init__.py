"""saic_gateway - Bridge between a SAIC telematics backend and an MQTT broker."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("saic-mqtt-gateway")
except PackageNotFoundError:
    __version__ = "0+local"
from saic_gateway.abrp import RoutePlanner
from saic_gateway.config import GatewayConfig, RefreshDefaults
from saic_gateway.exceptions import (
    SaicApiError,
    SaicAuthenticationError,
    SaicCommandRejectedError,
    SaicCommandTimeoutError,
    SaicConfigError,
    SaicError,
    SaicExchangeTimeoutError,
    SaicNotReadyError,
    SaicPayloadError,
    SaicPublishError,
    SaicSessionExpiredError,
    SaicTransportError,
)
from saic_gateway.exchange import CorrelatedExchange
from saic_gateway.gateway import SaicGateway
from saic_gateway.models import (
    ChargeManagementData,
    ClimateCommand,
    ProtocolMessage,
    RefreshMode,
    RemoteCommandRequest,
    RequestTemplate,
    VehicleMessage,
    VehicleStatusResponse,
    VinInfo,
)
from saic_gateway.scheduler import RefreshScheduler
from saic_gateway.session import Credentials
from saic_gateway.state.model import VehicleStateModel
from saic_gateway.vehicle_session import VehicleSession

__all__ = [
    "__version__",
    "ChargeManagementData",
    "ClimateCommand",
    "CorrelatedExchange",
    "Credentials",
    "GatewayConfig",
    "ProtocolMessage",
    "RefreshDefaults",
    "RefreshMode",
    "RefreshScheduler",
    "RemoteCommandRequest",
    "RequestTemplate",
    "RoutePlanner",
    "SaicApiError",
    "SaicAuthenticationError",
    "SaicCommandRejectedError",
    "SaicCommandTimeoutError",
    "SaicConfigError",
    "SaicError",
    "SaicExchangeTimeoutError",
    "SaicGateway",
    "SaicNotReadyError",
    "SaicPayloadError",
    "SaicPublishError",
    "SaicSessionExpiredError",
    "SaicTransportError",
    "VehicleMessage",
    "VehicleSession",
    "VehicleStateModel",
    "VehicleStatusResponse",
    "VinInfo",
]
