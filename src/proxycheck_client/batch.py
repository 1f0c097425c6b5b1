"""
Batch Coordinator.

Splits a subject list into upstream-sized chunks and turns a combined
multi-subject response back into single-subject payloads, so the
normalizer and policy engine run exactly as for a single check.
"""

from typing import Iterable, Iterator


class BatchCoordinator:
    """Chunking and demultiplexing for batch checks."""

    # Subjects per request without / with an API key
    FREE_CHUNK_SIZE = 100
    REGISTERED_CHUNK_SIZE = 1000

    # Top-level response fields copied into every per-subject payload
    SHARED_FIELDS = ("status", "node", "query time")

    def __init__(self, has_api_key: bool) -> None:
        self._chunk_size = (
            self.REGISTERED_CHUNK_SIZE if has_api_key else self.FREE_CHUNK_SIZE
        )

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def partition(self, subjects: Iterable[str]) -> list[list[str]]:
        """Split subjects into consecutive chunks of at most chunk_size."""
        return list(self._chunks(list(subjects)))

    def _chunks(self, subjects: list[str]) -> Iterator[list[str]]:
        for start in range(0, len(subjects), self._chunk_size):
            yield subjects[start:start + self._chunk_size]

    @staticmethod
    def request_body(chunk: list[str]) -> dict:
        return {"ips": ",".join(chunk)}

    def demultiplex(self, response: dict, chunk: list[str]) -> dict[str, dict]:
        """
        Build one single-subject payload per subject answered in ``response``.

        Subjects of the chunk missing from the response are skipped.
        """
        payloads: dict[str, dict] = {}
        for subject in chunk:
            if subject not in response:
                continue
            payload = {name: response.get(name) for name in self.SHARED_FIELDS}
            payload["status"] = response.get("status", "ok")
            payload[subject] = response[subject]
            payloads[subject] = payload
        return payloads
