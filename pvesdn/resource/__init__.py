from .diagnostics import Diagnostic, Diagnostics
from .models import EvpnZone, QinQZone, SimpleZone, VlanZone, VxlanZone, ZoneResourceModel
from .zone import ZoneResource, requires_replace
