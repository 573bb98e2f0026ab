from bizmanager.models.client import Client
from bizmanager.models.quote import Quote, Activity
from bizmanager.models.tracking import Tracking
from bizmanager.models.settings import SystemSettings

__all__ = ["Client", "Quote", "Activity", "Tracking", "SystemSettings"]
