from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for upstream chat-completion clients."""

	@abstractmethod
	async def complete_chat(
		self,
		messages: list[Any],
		*,
		model: str,
		max_tokens: int,
		temperature: float,
	) -> str:
		"""Send one chat-completion request and return the assistant content.

		Args:
			messages: Conversation forwarded verbatim to the provider.
			model: Provider model name.
			max_tokens: Completion token budget.
			temperature: Sampling temperature.

		Returns:
			str: Content of the first completion choice.

		Raises:
			UpstreamAppError: If the provider answers with a non-success status.
			UpstreamUnreachableAppError: If the provider cannot be reached.
		"""
		...
