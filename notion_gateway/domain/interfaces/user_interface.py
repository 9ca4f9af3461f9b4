"""Interface for presenting gateway output to a human operator.

Defines the contract for displaying tool results, errors and the tool
catalogue, allowing different UI implementations (e.g., rich console).
"""

import abc
from typing import Any, Dict, List


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_result(self, result: Any, **kwargs: Any) -> None:
        """Displays a JSON-serializable tool result.

        Args:
            result: The parsed result returned by a tool call.
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user.

        Args:
            info_message: The informational message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_tools(self, tools: List[Dict[str, Any]]) -> None:
        """Displays the catalogue of enabled tools.

        Args:
            tools: One dict per tool with at least 'name' and 'description'.
        """
        pass
