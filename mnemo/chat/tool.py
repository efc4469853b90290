"""
Tool representation and management for function calling.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List

from .schema import ParameterSpec, parse_parameters


@dataclass(frozen=True)
class Tool:
    """A tool the model can call."""
    name: str
    description: str
    function: Callable
    parameters: Dict
    specs: List[ParameterSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Tool name must not be empty")
        # Parsed once so a malformed schema fails at registration time
        object.__setattr__(self, "specs", parse_parameters(self.parameters))

    @property
    def required(self) -> List[str]:
        return [spec.name for spec in self.specs if spec.required]

    def to_llm_format(self) -> Dict:
        """Convert to LLM tool format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters
            }
        }
