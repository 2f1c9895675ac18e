import io
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from types import SimpleNamespace

import pytest

from opampclient.errors import PackagesStateProviderNotSetError
from opampclient.inmemstore import InMemPackagesStore
from opampclient.messages import (
    DownloadableFile,
    Header,
    Headers,
    PackageAvailable,
    PackageStatus,
    PackageStatusEnum,
    PackageStatuses,
    PackagesAvailable,
    PackageType,
)
from opampclient.packagessyncer import PackageSyncProcess
from opampclient.sender import SenderCommon
from opampclient.state import ClientSyncedState
from opampclient.types import Logger, PackageState


class RecordingLogger(Logger):
    def __init__(self):
        super().__init__()
        self.debugs = []
        self.errors = []

    def debug(self, message):
        self.debugs.append(message)

    def error(self, message):
        self.errors.append(message)


class FakeSender(SenderCommon):
    def __init__(self):
        super().__init__()
        self.heartbeats = []

    def set_heartbeat_interval(self, seconds):
        self.heartbeats.append(seconds)


@pytest.fixture
def file_server():
    files = {}
    seen_headers = []

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            seen_headers.append(dict(self.headers))
            body = files.get(self.path)
            if body is None:
                self.send_response(404)
                self.send_header("Content-Length", "0")
                self.end_headers()
                return
            self.send_response(200)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{server.server_address[1]}"
    yield SimpleNamespace(base=base, files=files, headers=seen_headers)
    server.shutdown()
    server.server_close()


def make_harness(available, store):
    lock = threading.Lock()
    sender = FakeSender()
    state = ClientSyncedState()
    logger = RecordingLogger()
    process = PackageSyncProcess(logger, available, sender, state, store, lock)
    return SimpleNamespace(process=process, lock=lock, sender=sender, state=state, logger=logger)


def run_to_completion(h):
    h.process.sync()
    assert h.process.done().wait(5)
    assert h.lock.acquire(timeout=5)
    h.lock.release()


def offer(url, version="1.2.3", package_hash=b"\x01\x02", content_hash=b"\x09", all_hash=b"\xaa\xbb",
          package_type=PackageType.TOP_LEVEL, headers=None):
    return PackagesAvailable(
        packages={
            "agent": PackageAvailable(
                type=package_type,
                version=version,
                hash=package_hash,
                file=DownloadableFile(
                    download_url=url, content_hash=content_hash, signature=b"sig", headers=headers
                ),
            )
        },
        all_packages_hash=all_hash,
    )


def test_reported_statuses_are_queued_for_sending(file_server):
    file_server.files["/agent.tar"] = b"x"
    h = make_harness(offer(file_server.base + "/agent.tar"), InMemPackagesStore())
    run_to_completion(h)

    assert h.sender.wait_pending(0)
    msg = h.sender.next_message.pop_pending()
    assert msg.package_statuses.packages["agent"].status == PackageStatusEnum.INSTALLED


def test_download_headers_are_sent(file_server):
    file_server.files["/agent.tar"] = b"x"
    headers = Headers(headers=[Header(key="X-Trace-Tag", value="tag-value")])
    h = make_harness(offer(file_server.base + "/agent.tar", headers=headers), InMemPackagesStore())
    run_to_completion(h)

    assert file_server.headers[0]["X-Trace-Tag"] == "tag-value"


def test_failed_download_marks_install_failed(file_server):
    store = InMemPackagesStore()
    h = make_harness(offer(file_server.base + "/missing.tar"), store)
    run_to_completion(h)

    status = store.last_reported_statuses().packages["agent"]
    assert status.status == PackageStatusEnum.INSTALL_FAILED
    assert "HTTP response=404" in status.error_message
    assert store.all_packages_hash() is None
    assert "Package syncing was not successful." in h.logger.errors


def test_unparseable_url_marks_install_failed():
    store = InMemPackagesStore()
    h = make_harness(offer("foo"), store)
    run_to_completion(h)

    status = store.last_reported_statuses().packages["agent"]
    assert status.status == PackageStatusEnum.INSTALL_FAILED
    assert "cannot download file from foo" in status.error_message


def test_matching_file_hash_skips_download(file_server):
    store = InMemPackagesStore()
    store.create_package("agent", PackageType.TOP_LEVEL)
    store.update_content("agent", io.BytesIO(b"original"), b"\x09", b"old")
    h = make_harness(offer(file_server.base + "/not-served.tar"), store)
    run_to_completion(h)

    assert file_server.headers == []
    assert store.file_contents["agent"] == b"original"
    assert store.last_reported_statuses().packages["agent"].status == PackageStatusEnum.INSTALLED


def test_unchanged_package_hash_is_skipped():
    store = InMemPackagesStore()
    store.set_package_state("agent", PackageState(exists=True, hash=b"\x01\x02", version="1.2.3"))
    h = make_harness(offer("foo"), store)
    run_to_completion(h)

    assert store.file_contents == {}
    assert h.logger.errors == []
    status = store.last_reported_statuses().packages["agent"]
    assert status.server_offered_version == "1.2.3"
    assert store.all_packages_hash() == b"\xaa\xbb"


def test_unneeded_packages_are_deleted():
    store = InMemPackagesStore()
    store.create_package("old", PackageType.ADDON)
    store.set_last_reported_statuses(PackageStatuses(packages={"old": PackageStatus(name="old")}))
    h = make_harness(PackagesAvailable(packages={}, all_packages_hash=b"\x01"), store)
    run_to_completion(h)

    assert store.packages() == []
    assert store.last_reported_statuses().packages == {}
    assert store.all_packages_hash() == b"\x01"


def test_up_to_date_hash_does_nothing():
    store = InMemPackagesStore()
    store.set_all_packages_hash(b"\x07")
    h = make_harness(offer("foo", all_hash=b"\x07"), store)
    run_to_completion(h)

    assert store.packages() == []
    assert store.last_reported_statuses() is None
    assert h.state.package_statuses.server_provided_all_packages_hash == b"\x07"
    assert h.state.package_statuses.packages == {}


def test_missing_provider_raises_and_releases_lock():
    lock = threading.Lock()
    process = PackageSyncProcess(
        RecordingLogger(), offer("foo"), FakeSender(), ClientSyncedState(), None, lock
    )
    with pytest.raises(PackagesStateProviderNotSetError):
        process.sync()
    assert process.done().is_set()
    assert lock.acquire(blocking=False)