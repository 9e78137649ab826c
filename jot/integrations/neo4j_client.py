"""
Neo4j HTTP transaction API client
"""
import json
import logging
import time
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, Iterable, List, Optional, Union

import requests

from jot.config import settings
from jot.errors import GraphError
from jot.utils.redact import redact

logger = logging.getLogger(__name__)

COMMIT_PATH = "/db/data/transaction/commit"


def retry_on_failure(max_retries: Optional[int] = None, backoff_factor: Optional[int] = None):
    """Decorator retrying transport failures; GraphError is not retried"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            retries = max_retries or settings.HTTP_MAX_RETRIES
            backoff = backoff_factor or settings.RETRY_BACKOFF_FACTOR
            for attempt in range(retries):
                try:
                    return func(*args, **kwargs)
                except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                    if attempt == retries - 1:
                        raise GraphError(f"Request failed after {retries} attempts: {e}") from e
                    sleep_time = backoff ** attempt
                    logger.warning(f"Request failed: {e}. Retry {attempt + 1}/{retries} after {sleep_time}s...")
                    time.sleep(sleep_time)
            raise GraphError(f"Failed after {retries} retries")
        return wrapper
    return decorator


@dataclass
class Statement:
    """A Cypher statement with its parameters"""
    statement: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"statement": self.statement}
        if self.parameters:
            data["parameters"] = self.parameters
        return data

    def __str__(self) -> str:
        return self.statement


@dataclass
class Column:
    """One cell of a result row; scalars are stored under ``{value}``"""
    name: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return dict(self.properties)


@dataclass
class Row:
    columns: List[Column] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.columns)


class GraphResult:
    """Rows of every statement result in a transaction response"""

    def __init__(self, data: Dict[str, Any]):
        if not isinstance(data, dict):
            raise GraphError("Invalid server response")
        errors = data.get("errors") or []
        if errors:
            for err in errors:
                logger.error(f"Operation failed: {err.get('code')}: {err.get('message')}")
            message = errors[0].get("message") or "Storage error"
            raise GraphError(f"Operation failed: {message}")

        self.rows: List[Row] = []
        try:
            for result in data["results"]:
                names = result["columns"]
                for entry in result["data"]:
                    row = Row()
                    for name, value in zip(names, entry["row"]):
                        column = Column(name)
                        if isinstance(value, dict):
                            column.properties.update(value)
                        else:
                            column.properties["{value}"] = value
                        row.columns.append(column)
                    self.rows.append(row)
        except (KeyError, TypeError) as e:
            raise GraphError("Invalid server response") from e

    def __len__(self) -> int:
        return len(self.rows)


class Neo4jClient:
    """Client for the Neo4j REST transaction endpoint"""

    def __init__(
        self,
        server_uri: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30,
    ):
        self.server_uri = (server_uri or settings.NEO4J_URL).rstrip("/")
        self.username = username or settings.NEO4J_USERNAME
        self.password = password or settings.NEO4J_PASSWORD
        self.timeout = timeout

        if not self.username or self.password is None:
            raise ValueError("Neo4j username and password are required")

        self._session: Optional[requests.Session] = requests.Session()
        self._session.auth = (self.username, self.password)
        self._session.headers.update({
            "Accept": "application/json; charset=UTF-8",
            "Content-Type": "application/json",
        })

    def execute(
        self,
        statement: Union[str, Statement],
        parameters: Optional[Dict[str, Any]] = None,
    ) -> GraphResult:
        """Run one statement in its own committed transaction"""
        if isinstance(statement, str):
            statement = Statement(statement, parameters or {})
        return self.execute_all([statement])

    @retry_on_failure()
    def execute_all(self, statements: Iterable[Statement]) -> GraphResult:
        """Run several statements in one committed transaction"""
        if self._session is None:
            raise GraphError("Client is closed")

        payload = {"statements": [s.to_json() for s in statements]}
        url = f"{self.server_uri}{COMMIT_PATH}"
        logger.debug(f"POST {redact(url)}: {len(payload['statements'])} statement(s)")

        response = self._session.post(url, data=json.dumps(payload), timeout=self.timeout)
        try:
            if not 200 <= response.status_code < 300:
                raise GraphError(f"Request failed: {response.status_code} {response.reason}")
            try:
                data = response.json()
            except ValueError as e:
                logger.error(f"Failed to parse response JSON: {e}")
                raise GraphError("Invalid server response") from e
            return GraphResult(data)
        finally:
            response.close()

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "Neo4jClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
