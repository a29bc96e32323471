from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Union


class NotifierPort(ABC):
    @abstractmethod
    def send(self, chat_id: Union[int, str], text: str) -> None:
        raise NotImplementedError
