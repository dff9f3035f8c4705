"""
careops config: load from env.

load_postgres_config(), load_scheduling_config().
"""
from careops.config.postgres import PostgresConfig, load_postgres_config
from careops.config.scheduling import SchedulingConfig, load_scheduling_config

__all__ = [
    "PostgresConfig",
    "load_postgres_config",
    "SchedulingConfig",
    "load_scheduling_config",
]
