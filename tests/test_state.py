import threading

import pytest

from opampclient.errors import (
    AgentDescriptionMissingError,
    AgentDescriptionNoAttributesError,
    AvailableComponentsMissingError,
    CustomCapabilitiesMissingError,
    HealthMissingError,
    PackageStatusesMissingError,
    RemoteConfigStatusMissingError,
)
from opampclient.messages import (
    AgentDescription,
    AgentToServerFlags,
    AnyValue,
    AvailableComponents,
    ComponentHealth,
    CustomCapabilities,
    KeyValue,
    PackageStatuses,
    RemoteConfigStatus,
    RemoteConfigStatuses,
)
from opampclient.state import ClientSyncedState


def _description():
    return AgentDescription(
        identifying_attributes=[KeyValue(key="service.name", value=AnyValue("otelcol"))]
    )


def test_fresh_state_is_empty():
    state = ClientSyncedState()
    assert state.agent_description is None
    assert state.health is None
    assert state.remote_config_status is None
    assert state.package_statuses is None
    assert state.custom_capabilities is None
    assert state.available_components is None
    assert state.flags == 0


def test_agent_description_missing():
    with pytest.raises(AgentDescriptionMissingError):
        ClientSyncedState().set_agent_description(None)


def test_agent_description_without_attributes():
    with pytest.raises(AgentDescriptionNoAttributesError):
        ClientSyncedState().set_agent_description(AgentDescription())


def test_agent_description_is_copied():
    state = ClientSyncedState()
    description = _description()
    state.set_agent_description(description)
    description.identifying_attributes.append(KeyValue(key="extra"))
    assert state.agent_description == _description()
    assert state.agent_description is not description


def test_non_identifying_attributes_alone_are_enough():
    state = ClientSyncedState()
    description = AgentDescription(non_identifying_attributes=[])
    state.set_agent_description(description)
    assert state.agent_description == description


def test_health():
    state = ClientSyncedState()
    with pytest.raises(HealthMissingError):
        state.set_health(None)
    health = ComponentHealth(healthy=True)
    state.set_health(health)
    health.healthy = False
    assert state.health.healthy is True


def test_remote_config_status():
    state = ClientSyncedState()
    with pytest.raises(RemoteConfigStatusMissingError) as info:
        state.set_remote_config_status(None)
    assert str(info.value) == "RemoteConfigStatus is not set"
    status = RemoteConfigStatus(
        last_remote_config_hash=b"abc", status=RemoteConfigStatuses.APPLIED
    )
    state.set_remote_config_status(status)
    assert state.remote_config_status == status


def test_package_statuses():
    state = ClientSyncedState()
    with pytest.raises(PackageStatusesMissingError):
        state.set_package_statuses(None)
    statuses = PackageStatuses(server_provided_all_packages_hash=b"h")
    state.set_package_statuses(statuses)
    assert state.package_statuses == statuses


def test_custom_capabilities():
    state = ClientSyncedState()
    assert state.has_custom_capability("io.example.cap") is False
    with pytest.raises(CustomCapabilitiesMissingError):
        state.set_custom_capabilities(None)
    state.set_custom_capabilities(CustomCapabilities(capabilities=["io.example.cap"]))
    assert state.has_custom_capability("io.example.cap") is True
    assert state.has_custom_capability("io.example.other") is False


def test_available_components():
    state = ClientSyncedState()
    with pytest.raises(AvailableComponentsMissingError) as info:
        state.set_available_components(None)
    assert str(info.value) == "AvailableComponents is not set"
    components = AvailableComponents(components={}, hash=b"\x01\x02")
    state.set_available_components(components)
    assert state.available_components == components


def test_flags_set_and_clear():
    state = ClientSyncedState()
    state.set_flags(AgentToServerFlags.REQUEST_INSTANCE_UID)
    assert state.flags == int(AgentToServerFlags.REQUEST_INSTANCE_UID)
    state.clear_flags(AgentToServerFlags.REQUEST_INSTANCE_UID)
    assert state.flags == 0


def test_concurrent_updates_keep_one_value():
    state = ClientSyncedState()
    values = [ComponentHealth(status=str(n)) for n in range(20)]
    threads = [threading.Thread(target=state.set_health, args=(v,)) for v in values]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert state.health in values