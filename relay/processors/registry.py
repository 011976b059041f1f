from typing import Iterable, Iterator

from relay.exceptions import UnknownProcessor
from relay.processors.base import AbstractProcessor


class ProcessorRegistry:
    """
    Maps processor id -> processor.
    Created once at app startup and stored on app.state.
    """

    def __init__(self, processors: Iterable[AbstractProcessor] = ()):
        self._processors: dict[str, AbstractProcessor] = {}
        for p in processors:
            self.register(p)

    def register(self, processor: AbstractProcessor) -> None:
        self._processors[processor.id] = processor

    def get(self, processor_id: str) -> AbstractProcessor:
        try:
            return self._processors[processor_id]
        except KeyError:
            raise UnknownProcessor(processor_id) from None

    def get_or_default(self, processor_id: str, default_id: str) -> AbstractProcessor:
        processor = self._processors.get(processor_id)
        if processor is None:
            return self.get(default_id)
        return processor

    def ids(self) -> list[str]:
        return list(self._processors.keys())

    def __contains__(self, processor_id: object) -> bool:
        return processor_id in self._processors

    def __iter__(self) -> Iterator[AbstractProcessor]:
        return iter(self._processors.values())

    def __len__(self) -> int:
        return len(self._processors)
