from abc import ABC, abstractmethod


class BaseLLM(ABC):
    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        """Return the generated text, or raise a CompletionError subclass."""

    async def close(self) -> None:
        return None
