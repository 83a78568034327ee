"""Web API for the permission usage list."""
from .server import ControllerBridge, create_app, find_free_port, start_in_thread

__all__ = ['ControllerBridge', 'create_app', 'find_free_port', 'start_in_thread']
