# opampclient

The transport-independent client side of the OpAMP (Open Agent Management
Protocol). An agent uses it to keep the state it reports to a management
server, to assemble outgoing messages, and to act on the messages the server
sends back.

## What is in the package

- `opampclient.messages` – dataclasses for the messages exchanged with the
  server (`AgentToServer`, `ServerToAgent` and their parts) and the flag and
  enum types (`AgentCapabilities`, `AgentToServerFlags`, `ServerToAgentFlags`,
  `RemoteConfigStatuses`, `PackageStatusEnum`, `PackageType`, `CommandType`).
  `clone()` makes a deep copy of any message; `AgentToServer.is_empty()` tells
  whether a message carries anything.
- `opampclient.state.ClientSyncedState` – thread-safe store of the agent's
  description, health, remote config status, package statuses, custom
  capabilities, available components and flags. Every stored value is a copy
  of what was handed in.
- `opampclient.nextmessage.NextMessage` – the message that will be sent next.
  `update()` applies a change and returns an event that is set when the message
  is taken for sending; `pop_pending()` returns the pending message and starts a
  new one with the same instance UID and capabilities and the next sequence
  number.
- `opampclient.sender` – `Sender` (abstract) and `SenderCommon`, which holds the
  `NextMessage`, coalesces `schedule_send()` calls, lets a transport loop block
  in `wait_pending(timeout)` and validates instance UIDs. Subclasses supply
  `set_heartbeat_interval()`.
- `opampclient.common.ClientCommon` – the client operations that do not depend
  on a transport: start validation, the first message, status setters, custom
  messages, available components, and running/stopping a background loop.
- `opampclient.receivedprocessor.ReceivedProcessor` – handles a `ServerToAgent`
  message. Parts the agent has no capability for are ignored; a command, when
  `ACCEPTS_RESTART_COMMAND` is set, is passed to `on_command` and the rest of
  the message is skipped. Everything else is collected into a `MessageData`
  and passed to `on_message`.
- `opampclient.packagessyncer.PackageSyncProcess` – syncs an offer of packages
  into a `PackagesStateProvider`, downloading package files over HTTP(S) with
  `urllib` and reporting package statuses as it goes. `sync()` takes a lock
  shared by the client and continues in a background thread, which releases it.
- `opampclient.inmemstore.InMemPackagesStore` – a `PackagesStateProvider` that
  keeps everything in memory (`file_contents`, `file_signatures`, and an
  optional `on_all_packages_hash` hook).
- `opampclient.types` – `StartSettings`, `Callbacks`, `MessageData`,
  `PackageState`, `PackagesStateProvider`, `PackagesSyncer`, `Logger`,
  `NopLogger` and `validate_instance_uid()`.
- `opampclient.client.OpAMPClient` – the abstract interface a complete client
  implements.
- `opampclient.errors` – exceptions, all subclasses of `OpAMPClientError`.

## Install

```
pip install opampclient
pip install "opampclient[test]"   # with pytest
```

## Using it

A transport is built from a `SenderCommon` subclass and a `ClientCommon`. The
loop handed to `start_connect_and_run` receives a stop event and must return
once it is set:

```python
import uuid

from opampclient.common import ClientCommon
from opampclient.messages import AgentCapabilities, AgentDescription, AnyValue, KeyValue
from opampclient.sender import SenderCommon
from opampclient.types import Callbacks, NopLogger, StartSettings


class LoopSender(SenderCommon):
    def set_heartbeat_interval(self, seconds):
        self.heartbeat = seconds


sender = LoopSender()
common = ClientCommon(NopLogger(), sender)
common.set_agent_description(
    AgentDescription(identifying_attributes=[KeyValue("service.name", AnyValue("otelcol"))])
)

settings = StartSettings(
    opamp_server_url="http://localhost:4320/v1/opamp",
    instance_uid=uuid.uuid4(),
    capabilities=AgentCapabilities.REPORTS_EFFECTIVE_CONFIG,
    callbacks=Callbacks(on_message=print),
)
common.prepare_start(settings)
common.prepare_first_message()


def run(stop):
    while not stop.is_set():
        if sender.wait_pending(0.1):
            msg = sender.next_message.pop_pending()
            if msg is not None and not msg.is_empty():
                deliver(msg)  # your transport


common.start_connect_and_run(run)
...
common.stop(5.0)
```

Notes:

- The agent description must be set before `prepare_start`; the
  `REPORTS_STATUS` capability is always added.
- `instance_uid` must be 16 bytes (or a `uuid.UUID`) and not all zeros; the
  default in `StartSettings` is all zeros and is rejected.
- `heartbeat_interval` is in seconds and is only passed to the sender when
  `REPORTS_HEARTBEAT` is set.
- Callbacks left as `None` do nothing; `get_effective_config` then returns
  `None`. `on_opamp_connection_settings` rejects an offer by raising.
- `stop` raises `NotStartedError` if the loop was never started and
  `TimeoutError` if it does not finish in time.

Invalid calls raise subclasses of `OpAMPClientError`, for example
`AgentDescriptionMissingError` when no description was set, or
`CustomCapabilityNotSupportedError` when a custom message uses a capability
that is not among the agent's custom capabilities.

`send_custom_message` returns an event that is set once the message has been
taken for sending. While a custom message is still pending, the call raises
`CustomMessagePendingError`, whose `sent` attribute holds the event to wait on.

## What it does not do

- It has no network transport: there is no HTTP or WebSocket client class and
  no concrete `OpAMPClient` implementation. Delivering messages and feeding
  server replies to `ReceivedProcessor.process_received_message` is left to
  the code that uses the package.
- Messages are plain dataclasses; there is no wire encoding or decoding.
- `InMemPackagesStore` is the only package storage provided; nothing is
  persisted to disk.

## Tests

```
pytest
```