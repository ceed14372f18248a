from typing import Optional


class EdoTrainerError(Exception):
	"""Base class for errors raised by edotrainer."""


class ParseError(EdoTrainerError, ValueError):
	"""A single ratio, number or chord token could not be parsed."""


class ValidationError(EdoTrainerError, ValueError):
	"""Exercise configuration rejected; the message is meant for the user.

	Args:
		message: Human-readable description naming the bad value or line
		field: Name of the offending configuration field, if known
	"""

	def __init__(self, message: str, field: Optional[str] = None) -> None:
		super().__init__(message)
		self.field = field
