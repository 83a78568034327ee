"""
Flask server exposing the permission usage list as JSON.
"""
from flask import Flask
import socket
import threading
from typing import Any, Callable, Dict, Optional, TypeVar
from ..services.usage_controller import Dispatch, UsageController

T = TypeVar('T')

# Seconds a request waits for the owning thread to run its call
CALL_TIMEOUT: float = 10.0


def find_free_port(preferred: int = 5050) -> int:
    """Try preferred port, fall back if unavailable."""
    for port in (preferred, 8080, 5000):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind(("127.0.0.1", port))
                return port
            except OSError:
                continue
    raise RuntimeError(f"No free port found ({preferred}/8080/5000 busy)")


class ControllerBridge:
    """
    Runs request handlers against a controller on the thread that owns it.

    Without a dispatch function the call runs on the request thread, which
    is right for a controller that no other thread touches.
    """

    def __init__(self, controller: UsageController, dispatch: Optional[Dispatch] = None,
                 timeout: float = CALL_TIMEOUT) -> None:
        self.controller = controller
        self.dispatch = dispatch
        self.timeout = timeout

    def call(self, func: Callable[[UsageController], T]) -> T:
        """
        Run func(controller) and return its result.

        Raises:
            TimeoutError: if the owning thread does not run the call in time
            Exception: whatever func raised, re-raised on the request thread
        """
        if self.dispatch is None:
            return func(self.controller)

        done = threading.Event()
        outcome: Dict[str, Any] = {}

        def run() -> None:
            try:
                outcome["result"] = func(self.controller)
            except Exception as e:
                outcome["error"] = e
            finally:
                done.set()

        self.dispatch(run)
        if not done.wait(self.timeout):
            raise TimeoutError(f"Controller did not respond within {self.timeout}s")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]


def create_app(controller: Optional[UsageController] = None,
               dispatch: Optional[Dispatch] = None) -> Flask:
    """
    Create Flask app serving one controller.

    Pass the window's controller and its dispatch function to share one
    set of view parameters with the UI. If no controller is supplied, a
    standalone one is created and loaded synchronously.
    """
    if controller is None:
        controller = UsageController(sync=True)
        controller.reload()

    app = Flask(__name__)
    bridge = ControllerBridge(controller, dispatch)
    app.config["USAGE_CONTROLLER"] = controller
    app.config["CONTROLLER_BRIDGE"] = bridge

    from . import routes
    routes.register_routes(app, bridge)
    return app


def start_in_thread(app: Flask, port: int) -> threading.Thread:
    """Run the server on a daemon thread; requests are handled one at a time."""
    thread = threading.Thread(
        target=app.run,
        kwargs={"host": "127.0.0.1", "port": port, "debug": False,
                "use_reloader": False, "threaded": False},
        daemon=True,
    )
    thread.start()
    print(f"Web API on http://127.0.0.1:{port}/api/usage")
    return thread
