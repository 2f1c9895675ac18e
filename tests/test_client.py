import threading

import pytest

from opampclient.client import OpAMPClient
from opampclient.messages import AgentDescription
from opampclient.types import StartSettings


class _RecordingClient(OpAMPClient):
    def __init__(self):
        self.calls = []
        self._description = None

    def start(self, settings):
        self.calls.append(("start", settings))

    def stop(self, timeout):
        self.calls.append(("stop", timeout))

    def set_agent_description(self, description):
        self._description = description

    def agent_description(self):
        return self._description

    def set_health(self, health):
        self.calls.append(("set_health", health))

    def update_effective_config(self):
        self.calls.append(("update_effective_config",))

    def set_remote_config_status(self, status):
        self.calls.append(("set_remote_config_status", status))

    def set_package_statuses(self, statuses):
        self.calls.append(("set_package_statuses", statuses))

    def request_connection_settings(self, request):
        self.calls.append(("request_connection_settings", request))

    def set_custom_capabilities(self, custom_capabilities):
        self.calls.append(("set_custom_capabilities", custom_capabilities))

    def set_flags(self, flags):
        self.calls.append(("set_flags", flags))

    def send_custom_message(self, message):
        return threading.Event()

    def set_available_components(self, components):
        self.calls.append(("set_available_components", components))


def test_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        OpAMPClient()


def test_complete_implementation_usable():
    client = _RecordingClient()
    settings = StartSettings(opamp_server_url="http://localhost:4320")
    description = AgentDescription(non_identifying_attributes=[])
    client.set_agent_description(description)
    client.start(settings)
    client.stop(None)
    assert client.agent_description() is description
    assert client.calls == [("start", settings), ("stop", None)]