from .api import ProxmoxAPI
from .sdn import SdnClient, ZonesClient
