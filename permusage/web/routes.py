"""
JSON API routes over the usage controller.
"""
from flask import Flask, jsonify, request
import traceback
from typing import Any, Dict, TYPE_CHECKING
from ..models import SortMode
from ..services.usage_controller import UsageController

if TYPE_CHECKING:
    from .server import ControllerBridge


def register_routes(app: Flask, bridge: 'ControllerBridge') -> None:
    """Register usage API routes with Flask app."""

    @app.route("/api/usage")
    def api_usage() -> Any: # pyright: ignore[reportUnusedFunction]
        return jsonify(bridge.call(usage_payload))

    @app.route("/api/filters/permissions")
    def api_permission_filters() -> Any: # pyright: ignore[reportUnusedFunction]
        return jsonify(bridge.call(
            lambda c: [o.to_dict() for o in c.permission_filter_options()]
        ))

    @app.route("/api/filters/time")
    def api_time_filters() -> Any: # pyright: ignore[reportUnusedFunction]
        return jsonify(bridge.call(
            lambda c: [o.to_dict() for o in c.time_filter_options()]
        ))

    @app.route("/api/view", methods=["POST"])
    def api_view() -> Any: # pyright: ignore[reportUnusedFunction]
        """Apply any of: sort, group, show_system, time_index."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({"error": "Expected a JSON object"}), 400

        def change(controller: UsageController) -> Dict[str, Any]:
            apply_view_changes(controller, body)
            return usage_payload(controller)

        try:
            payload = bridge.call(change)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            traceback.print_exc()
            return jsonify({"error": str(e)}), 500
        return jsonify(payload)

    @app.route("/api/refresh", methods=["POST"])
    def api_refresh() -> Any: # pyright: ignore[reportUnusedFunction]
        def refresh(controller: UsageController) -> Dict[str, Any]:
            controller.reload()
            return usage_payload(controller)

        return jsonify(bridge.call(refresh))


def parse_sort_mode(value: Any) -> SortMode:
    """Accept a sort mode by name ("RECENT") or by persisted value (1)."""
    if isinstance(value, str) and not value.isdigit():
        try:
            return SortMode[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown sort mode '{value}'")
    try:
        return SortMode(int(value))
    except (TypeError, ValueError):
        raise ValueError(f"Unknown sort mode '{value}'")


def apply_view_changes(controller: UsageController, body: Dict[str, Any]) -> None:
    """Apply requested changes; the time window goes last since it reloads."""
    if "sort" in body:
        controller.set_sort_mode(parse_sort_mode(body["sort"]))
    if "show_system" in body:
        if not isinstance(body["show_system"], bool):
            raise ValueError("show_system must be a boolean")
        controller.set_show_system(body["show_system"])
    if "group" in body:
        group = body["group"]
        if group is not None and not isinstance(group, str):
            raise ValueError("group must be a string or null")
        controller.set_group_filter(group or None)
    if "time_index" in body:
        index = body["time_index"]
        if not isinstance(index, int) or isinstance(index, bool):
            raise ValueError("time_index must be an integer")
        controller.set_time_index(index)


def usage_payload(controller: UsageController) -> Dict[str, Any]:
    view_model = controller.view_model
    return {
        "state": controller.state.value,
        "view_model": view_model.to_dict() if view_model else None,
        "menu": controller.menu_state.to_dict(),
        "header": controller.header_label(),
        "list_title": controller.time_window.list_title,
        "app_labels": controller.app_labels,
    }
