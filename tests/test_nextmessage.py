import threading

from opampclient.messages import AgentDescription, AgentToServer, KeyValue
from opampclient.nextmessage import NextMessage


def _set_description(msg):
    msg.agent_description = AgentDescription(identifying_attributes=[KeyValue(key="k")])


def test_nothing_pending_initially():
    assert NextMessage().pop_pending() is None


def test_update_then_pop():
    nm = NextMessage()
    nm.update(_set_description)
    msg = nm.pop_pending()
    assert msg.agent_description.identifying_attributes[0].key == "k"
    assert msg.sequence_num == 0
    assert nm.pop_pending() is None


def test_empty_update_still_pending():
    nm = NextMessage()
    nm.update(lambda msg: None)
    msg = nm.pop_pending()
    assert msg.is_empty()


def test_pop_resets_all_but_identity_fields():
    nm = NextMessage()

    def modify(msg):
        msg.instance_uid = b"\x07" * 16
        msg.capabilities = 5
        _set_description(msg)

    nm.update(modify)
    nm.pop_pending()
    nm.update(lambda msg: None)
    second = nm.pop_pending()
    assert second == AgentToServer(instance_uid=b"\x07" * 16, sequence_num=1, capabilities=5)


def test_sequence_numbers_increase():
    nm = NextMessage()
    seen = []
    for _ in range(3):
        nm.update(lambda msg: None)
        seen.append(nm.pop_pending().sequence_num)
    assert seen == [0, 1, 2]


def test_sending_event():
    nm = NextMessage()
    first = nm.update(lambda msg: None)
    again = nm.update(_set_description)
    assert first is again
    assert not first.is_set()
    nm.pop_pending()
    assert first.is_set()
    later = nm.update(lambda msg: None)
    assert later is not first
    assert not later.is_set()


def test_popped_message_is_independent():
    nm = NextMessage()
    captured = []

    def modify(msg):
        _set_description(msg)
        captured.append(msg)

    nm.update(modify)
    popped = nm.pop_pending()
    captured[0].agent_description.identifying_attributes.append(KeyValue(key="x"))
    assert len(popped.agent_description.identifying_attributes) == 1


def test_concurrent_updates_all_applied():
    nm = NextMessage()
    lock = threading.Lock()

    def bump(msg):
        msg.flags += 1

    threads = [threading.Thread(target=nm.update, args=(bump,)) for _ in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    with lock:
        msg = nm.pop_pending()
    assert msg.flags == 50