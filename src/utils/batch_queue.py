from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class BatchQueue(Generic[T]):
    def __init__(self, max_size: int = 10):
        """
        :param max_size: Tamaño de lote; al alcanzarlo add() devuelve el lote completo
        """
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._items: List[T] = []  # un solo dueño, sin acceso concurrente

    def add(self, item: T) -> Optional[List[T]]:
        self._items.append(item)
        if len(self._items) >= self.max_size:
            return self.flush()
        return None

    def flush(self) -> List[T]:
        batch, self._items = self._items, []
        return batch

    def size(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)
