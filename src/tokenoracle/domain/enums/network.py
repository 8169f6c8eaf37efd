from enum import Enum


class Network(str, Enum):
    """Supported networks. Values lowercase to match API conventions."""

    ETHEREUM = "ethereum"
    POLYGON = "polygon"
