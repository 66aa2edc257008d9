import asyncio
import logging
from typing import List, Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from cleanflow.config import settings
from cleanflow.connectors.base import BaseConnector, ExternalRow
from cleanflow.constants.connection_failures import (
    ConnectionFailure,
    classify_connection_error,
    explain_failure,
)
from cleanflow.schemas.integration import ConnectionTestResult, IntegrationSettings
from cleanflow.services.exceptions import ExternalConnectionError

log = logging.getLogger(__name__)

CONNECTION_TEST_QUERY = "SELECT 1 AS connection_test"


class PostgresConnector(BaseConnector):
    """
    Connector for the hospital bed-management PostgreSQL database.

    Every call opens a fresh connection (no pooling between sync runs) and
    closes it on both success and failure. Driver calls are blocking, so the
    async methods run them in a worker thread.
    """

    def __init__(self, config: IntegrationSettings, connect_timeout: int = 5):
        super().__init__(config)
        self.connect_timeout = connect_timeout
        self.url = URL.create(
            "postgresql+psycopg2",
            username=config.username or None,
            password=config.password or None,
            host=config.host or None,
            port=config.port,
            database=config.database or None,
        )
        log.debug(f"Postgres connector initialized for {config.host}:{config.port}/{config.database}")

    def _create_engine(self) -> Engine:
        return create_engine(
            self.url,
            poolclass=NullPool,
            connect_args={"connect_timeout": self.connect_timeout},
        )

    def _connection_error(self, exc: Exception) -> ExternalConnectionError:
        reason = classify_connection_error(exc)
        detail = str(getattr(exc, "orig", None) or exc).strip()
        message = explain_failure(reason, {'timeout': self.connect_timeout, 'detail': detail})
        return ExternalConnectionError(reason, message, {'host': self.config.host, 'port': self.config.port})

    def _execute(self, query: str, rows_expected: bool = True) -> List[ExternalRow]:
        engine = self._create_engine()
        try:
            try:
                connection = engine.connect()
            except SQLAlchemyError as e:
                log.error(f"External connection failed: {e}")
                raise self._connection_error(e) from e

            try:
                result = connection.exec_driver_sql(query)
                if not rows_expected:
                    return []
                return [dict(row) for row in result.mappings()]
            except SQLAlchemyError as e:
                detail = str(getattr(e, "orig", None) or e).strip()
                log.error(f"External query failed: {detail}")
                raise ExternalConnectionError(
                    ConnectionFailure.QUERY,
                    explain_failure(ConnectionFailure.QUERY, {'detail': detail}),
                    {'query': query}
                ) from e
            finally:
                connection.close()
        finally:
            engine.dispose()

    async def test_connection(self) -> ConnectionTestResult:
        try:
            await asyncio.to_thread(self._execute, CONNECTION_TEST_QUERY, False)
        except ExternalConnectionError as e:
            return ConnectionTestResult(success=False, message=e.message)
        except Exception as e:
            log.error(f"Unexpected error testing external connection: {e}", exc_info=True)
            return ConnectionTestResult(
                success=False,
                message=explain_failure(ConnectionFailure.OTHER, {'detail': str(e)})
            )
        return ConnectionTestResult(success=True, message="Connection to the external database established successfully!")

    async def fetch_rows(self) -> List[ExternalRow]:
        log.info(f"Executing external query: {self.config.query}")
        rows = await asyncio.to_thread(self._execute, self.config.query)
        log.info(f"Received {len(rows)} rows from external system")
        return rows


def build_connector(config: IntegrationSettings, connect_timeout: Optional[int] = None) -> BaseConnector:
    """Default connector factory used by the sync service."""
    if connect_timeout is None:
        connect_timeout = settings.external_connect_timeout
    return PostgresConnector(config, connect_timeout=connect_timeout)
