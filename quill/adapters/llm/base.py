from abc import ABC, abstractmethod


class AbstractTextBackend(ABC):
	"""Interface for backends that turn a prompt into text for a given model."""

	@abstractmethod
	async def generate_text(self, model: str, prompt: str) -> list[str]:
		"""Generate text for ``prompt`` using the model ``model``.

		Args:
			model: Backend model identifier to run the prompt against.
			prompt: Prompt text.

		Returns:
			list[str]: Text fragments in the order the backend reported them.
			May be empty if the model produced nothing.

		Raises:
			Exception: Any provider or transport failure.
		"""
		...
