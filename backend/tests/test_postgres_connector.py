from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from cleanflow.connectors.postgres_connector import PostgresConnector, build_connector
from cleanflow.constants.connection_failures import (
    ConnectionFailure,
    classify_connection_error,
    explain_failure,
)
from cleanflow.schemas.integration import IntegrationSettings
from cleanflow.services.exceptions import ExternalConnectionError


class DriverError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


def operational_error(message, pgcode=None):
    return OperationalError("connect", {}, DriverError(message, pgcode))


@pytest.fixture
def settings() -> IntegrationSettings:
    return IntegrationSettings(
        host="beds.hospital.local",
        port=5433,
        database="leitos",
        username="reader",
        password="s3cret",
        query="SELECT code1, tipobloq FROM cable1",
    )


def fake_engine(connection=None, connect_error=None):
    engine = MagicMock()
    if connect_error:
        engine.connect.side_effect = connect_error
    else:
        engine.connect.return_value = connection
    return engine


@pytest.mark.parametrize("error, expected", [
    (operational_error('connection to server failed: Connection refused'), ConnectionFailure.REFUSED),
    (operational_error('FATAL:  password authentication failed for user "reader"'), ConnectionFailure.AUTH_OR_DATABASE),
    (operational_error('FATAL:  database "leitos" does not exist'), ConnectionFailure.AUTH_OR_DATABASE),
    (operational_error('some message', pgcode="28P01"), ConnectionFailure.AUTH_OR_DATABASE),
    (operational_error('timeout expired'), ConnectionFailure.TIMEOUT),
    (operational_error('could not translate host name'), ConnectionFailure.OTHER),
])
def test_classify_connection_error(error, expected):
    assert classify_connection_error(error) == expected


def test_explain_failure_messages_are_distinct():
    messages = {explain_failure(code, {'timeout': 5, 'detail': 'x'}) for code in ConnectionFailure}
    assert len(messages) == len(ConnectionFailure)
    assert explain_failure(ConnectionFailure.TIMEOUT, {'timeout': 5}) == \
        "Connection timed out after 5s. Check that the server is reachable."


def test_url_is_built_from_settings(settings):
    connector = PostgresConnector(settings, connect_timeout=3)

    assert connector.url.drivername == "postgresql+psycopg2"
    assert (connector.url.host, connector.url.port, connector.url.database) == ("beds.hospital.local", 5433, "leitos")
    assert connector.url.username == "reader"
    assert connector.url.password == "s3cret"
    assert connector.connect_timeout == 3


def test_build_connector_uses_configured_timeout(settings):
    with patch("cleanflow.connectors.postgres_connector.settings") as app_settings:
        app_settings.external_connect_timeout = 9
        connector = build_connector(settings)
    assert connector.connect_timeout == 9


@pytest.mark.asyncio
async def test_fetch_rows_runs_query_verbatim(settings):
    connection = MagicMock()
    connection.exec_driver_sql.return_value.mappings.return_value = [
        {"code1": "QTO101", "tipobloq": "L"},
        {"code1": "APTO202", "tipobloq": "*"},
    ]
    engine = fake_engine(connection)
    connector = PostgresConnector(settings)

    with patch.object(connector, "_create_engine", return_value=engine):
        rows = await connector.fetch_rows()

    assert rows == [{"code1": "QTO101", "tipobloq": "L"}, {"code1": "APTO202", "tipobloq": "*"}]
    connection.exec_driver_sql.assert_called_once_with("SELECT code1, tipobloq FROM cable1")
    connection.close.assert_called_once()
    engine.dispose.assert_called_once()


@pytest.mark.asyncio
async def test_query_failure_closes_connection(settings):
    connection = MagicMock()
    connection.exec_driver_sql.side_effect = ProgrammingError("SELECT", {}, DriverError('relation "cable1" does not exist'))
    engine = fake_engine(connection)
    connector = PostgresConnector(settings)

    with patch.object(connector, "_create_engine", return_value=engine):
        with pytest.raises(ExternalConnectionError) as exc_info:
            await connector.fetch_rows()

    assert exc_info.value.reason == ConnectionFailure.QUERY
    assert 'relation "cable1" does not exist' in exc_info.value.message
    connection.close.assert_called_once()
    engine.dispose.assert_called_once()


@pytest.mark.asyncio
async def test_connect_failure_is_classified(settings):
    engine = fake_engine(connect_error=operational_error("Connection refused"))
    connector = PostgresConnector(settings)

    with patch.object(connector, "_create_engine", return_value=engine):
        with pytest.raises(ExternalConnectionError) as exc_info:
            await connector.fetch_rows()

    assert exc_info.value.reason == ConnectionFailure.REFUSED
    assert exc_info.value.message == "Could not connect to the server. Check host and port."
    engine.dispose.assert_called_once()


@pytest.mark.asyncio
async def test_connection_test_never_raises(settings):
    connector = PostgresConnector(settings)

    refused = fake_engine(connect_error=operational_error('password authentication failed for user "reader"'))
    with patch.object(connector, "_create_engine", return_value=refused):
        result = await connector.test_connection()
    assert result.success is False
    assert "Authentication or database" in result.message

    with patch.object(connector, "_create_engine", return_value=fake_engine(MagicMock())):
        result = await connector.test_connection()
    assert result.success is True
