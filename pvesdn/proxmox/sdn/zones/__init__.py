from .client import ZonesClient
from .models import ZoneGetResponse, ZoneListResponse, ZoneRecord, ZoneUpdateRequest
