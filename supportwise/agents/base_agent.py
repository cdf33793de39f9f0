from abc import ABC, abstractmethod

class BaseAgent(ABC):
    """Abstract base class for the pipeline agents in SupportWise."""

    @abstractmethod
    async def process(self, data: dict) -> dict:
        """
        Process an incoming request payload.

        Concrete agents define the keys they expect. Agents never raise for
        bad input here; they answer with {"status": "failure", "error": ...}.

        Args:
            data (dict): The input payload for the agent.

        Returns:
            dict: The result, always carrying a "status" key.
        """
        pass
