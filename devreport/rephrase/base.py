from abc import ABC, abstractmethod


class TextRewriter(ABC):
    """Advisory rewrite of free-text lines.

    Implementations must never raise: on any failure they return ``lines``
    unchanged.
    """

    @abstractmethod
    async def rewrite(self, lines: list[str]) -> list[str]:
        pass


class PassthroughRewriter(TextRewriter):
    async def rewrite(self, lines: list[str]) -> list[str]:
        return lines
