"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from finrisk_gateway.infrastructure.clients.statement_analyzer import StatementAnalyzerClient
from finrisk_gateway.infrastructure.clients.kyc import KycClient, LivenessClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_statement_analyzer() -> StatementAnalyzerClient:
    """Provide statement analyzer client instance"""
    return StatementAnalyzerClient()


def get_kyc_client() -> KycClient:
    """Provide PAN/Aadhaar verification client instance"""
    return KycClient()


def get_liveness_client() -> LivenessClient:
    """Provide liveness detection client instance"""
    return LivenessClient()
