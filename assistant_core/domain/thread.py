from typing import Iterable, Iterator, List, Optional

from assistant_core.domain.exceptions import ValidationError
from assistant_core.domain.models import Message


class Thread:
    """Ordered message log of one conversation.

    The caller owns the thread; an Assistant only appends to it.
    """

    def __init__(self, messages: Optional[Iterable[Message]] = None):
        self._messages: List[Message] = []
        for message in messages or ():
            self.append(message)

    @property
    def messages(self) -> List[Message]:
        # 返回内部列表本身，而非副本。
        return self._messages

    def append(self, message: Message) -> Message:
        if not isinstance(message, Message):
            raise ValidationError(
                code="INVALID_MESSAGE",
                message=f"expected Message, got {type(message).__name__}",
            )
        self._messages.append(message)
        return message

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __repr__(self) -> str:
        return f"Thread(messages={len(self._messages)})"
