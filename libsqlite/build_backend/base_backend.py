# Every build backend answers two questions about a platform target:
# "build it" (an exit code) and "where did the output go" (a directory).
# The orchestrator talks to nothing else, so tests can substitute a stub.

from abc import ABC, abstractmethod


class BaseBackend(ABC):
    name = "base"

    @abstractmethod
    def build(self, target_id):
        """Build the library for target_id and return the exit code."""

    @abstractmethod
    def evaluate(self, target_id):
        """Return the output directory of the built library for target_id."""
