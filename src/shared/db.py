"""Database wiring for the checkout domains.

Every domain runs on Protean's in-memory provider unless DATABASE_URL names
a SQL database, in which case all of them share it (each aggregate has its
own table).
"""

from protean.domain import Domain
from sqlalchemy import create_engine

from shared.config import Settings

SQL_PROVIDERS = ("sqlite", "postgresql")


def database_config(database_url: str) -> dict:
    provider = "sqlite" if database_url.startswith("sqlite") else "postgresql"
    return {"provider": provider, "database_uri": database_url}


def init_domain(domain: Domain, settings: Settings) -> None:
    """Point the domain at the configured database and initialize it."""
    if settings.database_url:
        domain.config["databases"]["default"] = database_config(settings.database_url)
    domain.init(traverse=False)


def setup_db(domain: Domain):
    """Create tables for every aggregate of the domain"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in SQL_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])

                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop the domain's tables"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in SQL_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)


def reset_data(domain: Domain):
    """Empty every provider of the domain (used between tests)"""
    for _, provider in domain.providers.items():
        provider._data_reset()
