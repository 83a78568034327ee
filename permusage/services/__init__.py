"""Business logic services."""
from .time_windows import TimeWindowCatalog
from .usage_index import UsageIndex
from .aggregation_service import AggregationEngine
from .usage_loader import UsageLoader
from .state_store import StateStore
from .usage_controller import UsageController, ControllerState

__all__ = ['TimeWindowCatalog', 'UsageIndex', 'AggregationEngine', 'UsageLoader',
           'StateStore', 'UsageController', 'ControllerState']
