"""
ODBC connection factory for the AS400 data-access layer.

Builds the IBM i Access ODBC connection string from settings and opens pyodbc
connections in autocommit mode; `As400Connection` switches autocommit off only
for the lifetime of each write transaction. Transient connection failures are
retried with exponential backoff using tenacity; the password never appears
in the connection string or in log output.

pyodbc is imported when a connection is opened rather than at module import,
because loading it requires the system unixODBC library.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple, Type

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from as400_dal.config import Settings, get_settings
from as400_dal.errors import DatabaseConnectionError
from as400_dal.infrastructure.connection import As400Connection
from as400_dal.recording.recorder import DataRecorder
from as400_dal.utils.logging import get_logger
from as400_dal.utils.normalizer import ValueNormalizer
from as400_dal.utils.profiler import QueryLogger

log = get_logger(__name__)


def _braced(driver: str) -> str:
    if not driver or driver.startswith("{"):
        return driver
    return f"{{{driver}}}"


def build_connection_string(settings: Settings) -> str:
    """
    Compose the ODBC connection string (credentials excluded).

    Optional parts are omitted when empty rather than emitted as blanks.
    """
    parts: List[Tuple[str, str]] = [
        ("DRIVER", _braced(settings.driver)),
        ("SYSTEM", settings.system),
        ("CommitMode", settings.commit_mode),
        ("ExtendedDynamic", settings.extended_dynamic),
        ("PackageLibrary", settings.package_library),
        ("TranslateHex", settings.translate_hex),
        ("DATABASE", settings.database),
        ("DefaultLibraries", settings.default_libraries),
    ]
    return ";".join(f"{key}={value}" for key, value in parts if value)


def _driver_errors() -> Tuple[Type[BaseException], ...]:
    import pyodbc

    return (pyodbc.Error,)


def _is_transient(exc: BaseException) -> bool:
    import pyodbc

    return isinstance(exc, (pyodbc.OperationalError, pyodbc.InterfaceError))


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)
def _open(connection_string: str, settings: Settings) -> Any:
    import pyodbc

    return pyodbc.connect(
        connection_string,
        autocommit=True,
        timeout=settings.connect_timeout,
        uid=settings.user,
        pwd=settings.password.get_secret_value(),
    )


def connect(settings: Optional[Settings] = None) -> Any:
    """
    Open a raw pyodbc connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient errors.

    Raises
    ------
    DatabaseConnectionError
        If the connection fails after all retry attempts.
    """
    import pyodbc

    settings = settings or get_settings()
    connection_string = build_connection_string(settings)
    log.info(
        "Connecting to AS400",
        extra={"connection_string": connection_string, "user": settings.user},
    )
    try:
        return _open(connection_string, settings)
    except pyodbc.Error as exc:
        raise DatabaseConnectionError(f"Database connection error: {exc}") from exc


def create_connection(
    settings: Optional[Settings] = None,
    recorder: Optional[DataRecorder] = None,
    query_logger: Optional[QueryLogger] = None,
) -> As400Connection:
    """
    Build an `As400Connection` bound to the configured AS400 system.

    Example
    -------
        connection = create_connection()
        rows = connection.select("SALES.CUSTOMERS", conditions={"CUSSTS": "A"}, limit=10)
    """
    settings = settings or get_settings()
    return As400Connection(
        lambda: connect(settings),
        query_logger=query_logger,
        recorder=recorder,
        normalizer=ValueNormalizer(settings.legacy_encoding, decode_bytes=settings.decode_bytes),
        driver_errors=_driver_errors(),
    )


__all__ = ["build_connection_string", "connect", "create_connection"]
