import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .tabular_store import TabularStore, check_delete_range, pad_row


@dataclass
class _Sink:
    headers: List[str] = field(default_factory=list)
    rows: List[List[Any]] = field(default_factory=list)


class InMemoryTabularStore(TabularStore):
    """
    Process-local store. Used for tests, demos and the default
    configuration; contents vanish with the process.
    """

    def __init__(self, base_url: str = "memory://form-intake"):
        self.base_url = base_url.rstrip("/")
        self._sinks: Dict[str, _Sink] = {}
        self._lock = threading.Lock()

    def _sink(self, sink: str) -> _Sink:
        try:
            return self._sinks[sink]
        except KeyError:
            raise KeyError(f"Sink '{sink}' does not exist") from None

    def get_headers(self, sink: str) -> List[str]:
        with self._lock:
            return list(self._sink(sink).headers)

    def set_headers(self, sink: str, headers: Sequence[str]) -> None:
        with self._lock:
            self._sink(sink).headers = list(headers)

    def get_all_rows(self, sink: str) -> List[List[Any]]:
        with self._lock:
            state = self._sink(sink)
            return [pad_row(row, len(state.headers)) for row in state.rows]

    def append_row(self, sink: str, values: Sequence[Any]) -> None:
        with self._lock:
            self._sink(sink).rows.append(list(values))

    def delete_rows(self, sink: str, start_index: int, count: int) -> None:
        with self._lock:
            state = self._sink(sink)
            check_delete_range(start_index, count, len(state.rows))
            del state.rows[start_index:start_index + count]

    def clear_sink(self, sink: str) -> None:
        with self._lock:
            state = self._sink(sink)
            state.headers = []
            state.rows = []

    def create_sink(self, sink: str) -> None:
        with self._lock:
            self._sinks.setdefault(sink, _Sink())

    def sink_exists(self, sink: str) -> bool:
        with self._lock:
            return sink in self._sinks

    def get_sink_reference_url(self, sink: str) -> str:
        return f"{self.base_url}/{sink}"

    def list_sinks(self) -> List[str]:
        with self._lock:
            return list(self._sinks)
