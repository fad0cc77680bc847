"""Tests for the Reporter class."""

import threading
from types import MappingProxyType
from unittest import mock

import pytest
import requests

from resmon.models import MemoryStats, NetworkStats, ProcessStats, Snapshot
from resmon.reporter import DEFAULT_ENDPOINT, Reporter


@pytest.fixture
def snapshot():
    return Snapshot(
        cpu=(10.0,),
        memory=MemoryStats(total=100, used=50),
        swap=MemoryStats(total=0, used=0),
        network=MappingProxyType({"eth0": NetworkStats(rx=1, tx=2)}),
        processes=ProcessStats(total=1, running=1, sleeping=0, zombie=0),
    )


def make_session(status_code=200, error=None):
    session = mock.create_autospec(requests.Session, instance=True)
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = mock.Mock(status_code=status_code)
    return session


class TestReporter:
    """Tests for Reporter."""

    def test_default_endpoint(self):
        """Test the reporter targets the local endpoint by default."""
        reporter = Reporter(session_factory=make_session)
        assert reporter.endpoint == DEFAULT_ENDPOINT == "http://localhost:25800"

    def test_send_posts_json(self, snapshot):
        """Test send POSTs the wire representation with the configured timeout."""
        session = make_session()
        reporter = Reporter(
            "http://collector:9000/ingest", timeout=2.5, session_factory=lambda: session
        )

        assert reporter.send(snapshot) is True

        session.post.assert_called_once_with(
            "http://collector:9000/ingest",
            json=snapshot.to_dict(),
            timeout=2.5,
        )

    @pytest.mark.parametrize("status_code", [200, 201, 204])
    def test_2xx_is_success(self, snapshot, status_code):
        """Test any 2xx status counts as delivered."""
        reporter = Reporter(session_factory=lambda: make_session(status_code))
        assert reporter.send(snapshot) is True

    @pytest.mark.parametrize("status_code", [301, 400, 404, 500, 503])
    def test_non_2xx_is_failure(self, snapshot, status_code, caplog):
        """Test other statuses are logged and reported as failures."""
        reporter = Reporter(session_factory=lambda: make_session(status_code))

        assert reporter.send(snapshot) is False
        assert f"HTTP {status_code}" in caplog.text

    @pytest.mark.parametrize(
        "error",
        [requests.ConnectionError("refused"), requests.Timeout("slow")],
    )
    def test_transport_error_is_swallowed(self, snapshot, error, caplog):
        """Test transport failures are logged, not raised."""
        session = make_session(error=error)
        reporter = Reporter(session_factory=lambda: session)

        assert reporter.send(snapshot) is False
        assert "Failed to send snapshot" in caplog.text
        # No retry within the same tick
        assert session.post.call_count == 1

    def test_submit_does_not_block(self, snapshot):
        """Test submit returns while the request is still in flight."""
        release = threading.Event()
        session = make_session()

        def slow_post(*args, **kwargs):
            release.wait(timeout=5.0)
            return mock.Mock(status_code=200)

        session.post.side_effect = slow_post
        reporter = Reporter(session_factory=lambda: session)

        thread = reporter.submit(snapshot)
        try:
            assert thread.daemon is True
            assert thread.is_alive()
        finally:
            release.set()
            thread.join(timeout=5.0)

        assert not thread.is_alive()
        session.post.assert_called_once()

    def test_each_send_uses_its_own_session(self, snapshot):
        """Test overlapping deliveries never share a session, and each is closed."""
        release = threading.Event()
        sessions = []

        def factory():
            session = make_session()

            def slow_post(*args, **kwargs):
                release.wait(timeout=5.0)
                return mock.Mock(status_code=200)

            session.post.side_effect = slow_post
            sessions.append(session)
            return session

        reporter = Reporter(session_factory=factory)

        threads = [reporter.submit(snapshot) for _ in range(3)]
        release.set()
        for thread in threads:
            thread.join(timeout=5.0)

        assert len({id(session) for session in sessions}) == 3
        for session in sessions:
            session.post.assert_called_once()
            session.close.assert_called_once_with()

    def test_session_closed_after_transport_error(self, snapshot):
        """Test a failed send still releases its session."""
        session = make_session(error=requests.ConnectionError("refused"))

        Reporter(session_factory=lambda: session).send(snapshot)

        session.close.assert_called_once_with()
