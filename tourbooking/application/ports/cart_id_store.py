from abc import ABC, abstractmethod


class CartIdStorePort(ABC):
    @abstractmethod
    def get(self) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, cart_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def discard(self) -> None:
        """Release the storage itself once the session is gone."""
        raise NotImplementedError
