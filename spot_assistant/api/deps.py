# Role: Process-wide FlowController for the HTTP layer. Created on first use (or at app startup) and
# handed to routes through FastAPI's dependency system so tests can override it.

from __future__ import annotations

from typing import Optional

from spot_assistant.core.flow_controller import FlowController

_flow_controller: Optional[FlowController] = None


def init_flow_controller(flow: Optional[FlowController] = None) -> FlowController:
    global _flow_controller
    _flow_controller = flow or FlowController()
    return _flow_controller


def get_flow_controller() -> FlowController:
    if _flow_controller is None:
        return init_flow_controller()
    return _flow_controller
