"""Unit tests for the Neo4j HTTP client (transport mocked)."""

from __future__ import annotations

import json
import unittest
from unittest.mock import MagicMock, patch

import pytest
import requests

from jot.errors import GraphError
from jot.integrations.neo4j_client import GraphResult, Neo4jClient, Statement


def _response(status: int = 200, body=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.reason = "OK" if status == 200 else "Server Error"
    response.json.return_value = body if body is not None else {"results": [], "errors": []}
    return response


class TestGraphResult(unittest.TestCase):
    def test_rows_and_scalars(self):
        result = GraphResult({
            "results": [{
                "columns": ["n", "count"],
                "data": [
                    {"row": [{"name": "Alice"}, 3]},
                    {"row": [{"name": "Bob"}, 1]},
                ],
            }],
            "errors": [],
        })
        self.assertEqual(len(result), 2)
        first = result.rows[0]
        self.assertEqual(first.columns[0].name, "n")
        self.assertEqual(first.columns[0].properties, {"name": "Alice"})
        self.assertEqual(first.columns[1].properties, {"{value}": 3})

    def test_errors_array(self):
        with self.assertRaises(GraphError) as ctx:
            GraphResult({"results": [], "errors": [{"code": "Neo.X", "message": "bad cypher"}]})
        self.assertIn("bad cypher", str(ctx.exception))

    def test_malformed_response(self):
        with self.assertRaises(GraphError):
            GraphResult({"results": [{"columns": ["n"]}]})
        with self.assertRaises(GraphError):
            GraphResult(["not", "a", "dict"])


class TestNeo4jClient(unittest.TestCase):
    def setUp(self):
        self.client = Neo4jClient("http://graph:7474/", "neo4j", "secret")

    def tearDown(self):
        self.client.close()

    def test_requires_credentials(self):
        with patch("jot.integrations.neo4j_client.settings") as s:
            s.NEO4J_URL = "http://graph:7474"
            s.NEO4J_USERNAME = None
            s.NEO4J_PASSWORD = None
            with self.assertRaises(ValueError):
                Neo4jClient()

    def test_session_auth(self):
        self.assertEqual(self.client._session.auth, ("neo4j", "secret"))
        self.assertEqual(self.client.server_uri, "http://graph:7474")

    def test_execute_posts_statement(self):
        with patch.object(self.client._session, "post", return_value=_response()) as post:
            self.client.execute("MATCH (n) WHERE n.id = $id RETURN n", {"id": 5})

        url = post.call_args[0][0]
        self.assertEqual(url, "http://graph:7474/db/data/transaction/commit")
        payload = json.loads(post.call_args[1]["data"])
        self.assertEqual(payload, {"statements": [
            {"statement": "MATCH (n) WHERE n.id = $id RETURN n", "parameters": {"id": 5}},
        ]})

    def test_execute_all(self):
        statements = [Statement("CREATE (n:A)"), Statement("CREATE (n:B)")]
        with patch.object(self.client._session, "post", return_value=_response()) as post:
            result = self.client.execute_all(statements)
        payload = json.loads(post.call_args[1]["data"])
        self.assertEqual(payload["statements"], [{"statement": "CREATE (n:A)"}, {"statement": "CREATE (n:B)"}])
        self.assertEqual(len(result), 0)

    def test_response_closed(self):
        response = _response()
        with patch.object(self.client._session, "post", return_value=response):
            self.client.execute("RETURN 1")
        response.close.assert_called_once()

    def test_http_error(self):
        response = _response(status=500)
        with patch.object(self.client._session, "post", return_value=response):
            with self.assertRaises(GraphError) as ctx:
                self.client.execute("RETURN 1")
        self.assertIn("500", str(ctx.exception))
        response.close.assert_called_once()

    def test_invalid_json(self):
        response = _response()
        response.json.side_effect = ValueError("no json")
        with patch.object(self.client._session, "post", return_value=response):
            with self.assertRaises(GraphError):
                self.client.execute("RETURN 1")

    def test_retries_connection_errors(self):
        side_effect = [requests.exceptions.ConnectionError("down"), _response()]
        with patch.object(self.client._session, "post", side_effect=side_effect) as post, \
                patch("jot.integrations.neo4j_client.time.sleep") as sleep:
            self.client.execute("RETURN 1")
        self.assertEqual(post.call_count, 2)
        sleep.assert_called_once()

    def test_gives_up_after_retries(self):
        with patch.object(self.client._session, "post",
                          side_effect=requests.exceptions.Timeout("slow")) as post, \
                patch("jot.integrations.neo4j_client.time.sleep"):
            with self.assertRaises(GraphError):
                self.client.execute("RETURN 1")
        self.assertEqual(post.call_count, 3)

    def test_closed_client(self):
        self.client.close()
        with self.assertRaises(GraphError):
            self.client.execute("RETURN 1")


@pytest.mark.neo4j
class TestNeo4jLive(unittest.TestCase):
    """Runs against a real server; enable with ``--neo4j``."""

    def test_return_scalar(self):
        with Neo4jClient() as client:
            result = client.execute("RETURN 1 AS one")
        self.assertEqual(result.rows[0].columns[0].properties["{value}"], 1)


if __name__ == "__main__":
    unittest.main()
