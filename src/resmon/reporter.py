"""HTTP delivery of snapshots for resmon."""

import logging
import threading
from collections.abc import Callable

import requests

from resmon.models import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:25800"


class Reporter:
    """
    Posts each snapshot as JSON to a fixed endpoint.

    Delivery is best effort and at most once: failures are logged and the
    snapshot is dropped. ``submit()`` sends on a separate daemon thread so a
    slow endpoint never holds up sampling. Sessions are not shared between
    threads: every send opens its own and closes it afterwards.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 5.0,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        """
        Initialize the Reporter.

        Args:
            endpoint: URL that receives one POST per snapshot.
            timeout: Connect/read timeout per request (in seconds).
            session_factory: Builds the session used for a single send.
        """
        self._endpoint = endpoint
        self._timeout = timeout
        self._session_factory = session_factory

    @property
    def endpoint(self) -> str:
        """Get the delivery endpoint."""
        return self._endpoint

    def send(self, snapshot: Snapshot) -> bool:
        """POST the snapshot; return True on a 2xx response."""
        session = self._session_factory()
        try:
            response = session.post(
                self._endpoint,
                json=snapshot.to_dict(),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Failed to send snapshot to %s: %s", self._endpoint, exc)
            return False
        finally:
            session.close()

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Endpoint %s rejected snapshot: HTTP %d",
                self._endpoint,
                response.status_code,
            )
            return False

        logger.debug("Snapshot delivered to %s", self._endpoint)
        return True

    def submit(self, snapshot: Snapshot) -> threading.Thread:
        """Send the snapshot in the background and return the sending thread."""
        thread = threading.Thread(
            target=self.send,
            args=(snapshot,),
            daemon=True,
            name="Reporter",
        )
        thread.start()
        return thread
