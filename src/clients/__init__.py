"""
Client modules for text-generation backends
"""

from .base import GeneratedContent, GenerationBackend, HttpBackend, SyncBackend
from .providers import BackendConfig, PROVIDER_SPECS, recognised_env_names
from .chain import ProviderChain, create_chain, create_hosted, create_local_backend
from .hosted import HostedBackend

__all__ = [
    "GeneratedContent",
    "GenerationBackend",
    "HttpBackend",
    "SyncBackend",
    "BackendConfig",
    "PROVIDER_SPECS",
    "recognised_env_names",
    "ProviderChain",
    "HostedBackend",
    "create_chain",
    "create_hosted",
    "create_local_backend",
]
