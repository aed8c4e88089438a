"""Remote job client implementations."""

from codemaker_cli.client.base import JobClient
from codemaker_cli.client.http_client import CodemakerHttpClient

__all__ = [
    "CodemakerHttpClient",
    "JobClient",
]
