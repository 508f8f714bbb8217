"""register_ingestion.sources -- Inbound adapters for the published register."""

from register_ingestion.sources.base import RegisterSource
from register_ingestion.sources.parliament import ParliamentRegisterSource

__all__ = [
    "ParliamentRegisterSource",
    "RegisterSource",
]
