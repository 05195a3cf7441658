"""Analysis producers and the source-hosting provider."""

from .gateway import ProducerGateway
from .github import GitHubProvider, RepositoryCheck
from .http import HttpProducerGateway

__all__ = [
    "ProducerGateway",
    "HttpProducerGateway",
    "GitHubProvider",
    "RepositoryCheck",
]
