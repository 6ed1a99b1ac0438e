"""
Control API
===========

Operator pump and mode commands.

Routes:
- POST /command - {"pump": "on"|"off"?, "mode": "auto"|"manual"?}

The command updates the live status only. The sensor node picks up the
intended pump state on its next report; there is no acknowledgment channel.
"""

from __future__ import annotations

from flask import Blueprint

from app.blueprints.api._common import get_command_gateway, get_json, legacy, legacy_request, parse_body, success
from app.enums import CommandSource
from app.schemas.control import CommandRequest
from app.utils.http import safe_route

control_api = Blueprint("control_api", __name__)


@control_api.post("/command")
@safe_route("Failed to send command")
def send_command():
    body = parse_body(CommandRequest, get_json())
    applied = get_command_gateway().issue_command(
        pump=body.pump,
        mode=body.mode,
        source=CommandSource.OPERATOR,
    )
    if legacy_request():
        return legacy({"success": True, "command": applied, "message": "Command sent successfully"})
    return success(applied, message="Command sent successfully")
