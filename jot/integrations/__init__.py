"""External service clients"""
from .neo4j_client import GraphResult, Neo4jClient, Statement

__all__ = ["Neo4jClient", "Statement", "GraphResult"]
