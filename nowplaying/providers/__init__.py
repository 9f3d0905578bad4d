from .base import ProviderAdapter
from .generic import GenericIcyAdapter
from .naxi import NaxiAdapter
from .radioparadise import RadioParadiseAdapter
from .radios import RadioSAdapter

__all__ = [
    "ProviderAdapter",
    "GenericIcyAdapter",
    "NaxiAdapter",
    "RadioParadiseAdapter",
    "RadioSAdapter",
]
