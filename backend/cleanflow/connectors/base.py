from abc import ABC, abstractmethod
from typing import Any, Dict, List

from cleanflow.schemas.integration import ConnectionTestResult, IntegrationSettings

# One fetched record of the external system: column name -> scalar value
ExternalRow = Dict[str, Any]


class BaseConnector(ABC):
    """Abstract Base Class for external status sources."""

    def __init__(self, config: IntegrationSettings):
        self.config = config

    @abstractmethod
    async def test_connection(self) -> ConnectionTestResult:
        """Checks connectivity only; never raises."""
        pass

    @abstractmethod
    async def fetch_rows(self) -> List[ExternalRow]:
        """Runs the configured query and returns the raw rows."""
        pass
