"""
Centralized credential management for the Slack tools.

Raw values are read by CredentialStore (env vars, then .env); a single
authentication mode is selected by resolve_credential().

Usage:
    from slack_tools.credentials import CredentialStore, resolve_credential

    store = CredentialStore()
    credential = resolve_credential(store.snapshot())
"""

from .base import CredentialError, CredentialSpec, CredentialStore
from .resolver import (
    CREDENTIAL_NAMES,
    CredentialKind,
    IncompletePairError,
    NoCredentialError,
    SlackCredential,
    resolve_credential,
)
from .slack import SLACK_CREDENTIALS

__all__ = [
    "CREDENTIAL_NAMES",
    "CredentialError",
    "CredentialKind",
    "CredentialSpec",
    "CredentialStore",
    "IncompletePairError",
    "NoCredentialError",
    "SLACK_CREDENTIALS",
    "SlackCredential",
    "resolve_credential",
]
