"""UI components."""
from .usage_window import UsageWindow, MainThreadDispatcher
from .filter_dialogs import PermissionFilterDialog, TimeFilterDialog

__all__ = ['UsageWindow', 'MainThreadDispatcher', 'PermissionFilterDialog', 'TimeFilterDialog']
