"""Configuration for integration tests.

Override these values via environment variables to match your local setup.
Each name refers to a profile in ~/.config/polydb/config.toml.

Example:
    export POLYDB_TEST_POSTGRES_PROFILE=pg_local
    export POLYDB_TEST_MYSQL_PROFILE=mysql_local
    export POLYDB_TEST_REDIS_PROFILE=redis_local
"""

import os

POSTGRES_PROFILE = os.environ.get("POLYDB_TEST_POSTGRES_PROFILE", "test_pg")
MYSQL_PROFILE = os.environ.get("POLYDB_TEST_MYSQL_PROFILE", "test_mysql")
REDIS_PROFILE = os.environ.get("POLYDB_TEST_REDIS_PROFILE", "test_redis")

# CLI profile arguments
POSTGRES_ARGS = ["--profile", POSTGRES_PROFILE]
MYSQL_ARGS = ["--profile", MYSQL_PROFILE]
REDIS_ARGS = ["--profile", REDIS_PROFILE]
