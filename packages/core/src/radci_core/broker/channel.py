"""Line-delimited JSON channel to the Radicle CI broker (stdin in, stdout out)."""

from __future__ import annotations

import json
import logging
from typing import IO

from radci_core.errors import BrokerWriteError

logger = logging.getLogger(__name__)


class Broker:
    """Reads the single request message and writes responses, one JSON object per line.

    The request is read as raw bytes so that undecodable input reaches the
    protocol decoder and is answered with an error response.
    """

    def __init__(self, reader: IO[bytes], writer: IO[str]):
        self._reader = reader
        self._writer = writer

    def read_request(self) -> bytes:
        raw = self._reader.read()
        logger.debug("received message from broker: %s", raw.decode("utf-8", errors="replace").strip())
        return raw

    def send(self, message: dict) -> None:
        line = json.dumps(message, separators=(",", ":"), ensure_ascii=False)
        logger.debug("sending message to broker: %s", line)
        try:
            self._writer.write(line + "\n")
            self._writer.flush()
        except (OSError, ValueError) as e:
            # ValueError: write to a closed file.
            raise BrokerWriteError(f"could not write response to broker: {e}") from e
