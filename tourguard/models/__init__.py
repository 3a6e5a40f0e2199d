from tourguard.models.messages import (
    CycleAck,
    LocationErrorMessage,
    PositionMessage,
    SOSRequest,
    SOSResponse,
    ZoneStatusOut,
)

__all__ = [
    "CycleAck",
    "LocationErrorMessage",
    "PositionMessage",
    "SOSRequest",
    "SOSResponse",
    "ZoneStatusOut",
]
