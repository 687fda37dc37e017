from .client import SdnClient
from .zones import ZonesClient
