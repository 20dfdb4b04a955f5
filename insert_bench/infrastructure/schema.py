"""
Schema provisioning for the insert pathway benchmark.

Every pathway owns one table; all three tables share the same column layout:
identity key, registration (varchar(20)), centisecond timestamp and two
numeric(18,4) coordinates. The disk pathway's table is WAL-logged, the two
memory pathways' tables are UNLOGGED.

Statements are idempotent (`IF NOT EXISTS` / `OR REPLACE`) so `provision`
can run before every benchmark session. `BEGIN ATOMIC` procedure bodies need
PostgreSQL 14 or later.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Protocol

import psycopg

from insert_bench.errors import ProvisioningError
from insert_bench.utils.logging import get_logger

log = get_logger(__name__)

DISK_SCHEMA = "ondisk"
MEMORY_SCHEMA = "inmemory"

DISK_TABLE = f"{DISK_SCHEMA}.vehicle_locations"
MEMORY_TABLE = f"{MEMORY_SCHEMA}.vehicle_locations"
COMPILED_MEMORY_TABLE = f"{MEMORY_SCHEMA}.vehicle_locations_compiled"

DISK_INSERT_PROCEDURE = f"{DISK_SCHEMA}.insert_vehicle_location"
MEMORY_INSERT_PROCEDURE = f"{MEMORY_SCHEMA}.insert_vehicle_location"
COMPILED_MEMORY_BATCH_PROCEDURE = f"{MEMORY_SCHEMA}.insert_vehicle_locations_batch"

TEMPLATE_REGISTRATION_NUMBER = "EA-232-JB"
TEMPLATE_LONGITUDE = Decimal("125.4")
TEMPLATE_LATITUDE = Decimal("132.7")


class _ProvisionedObjects(Protocol):
    name: str
    table: str
    procedure: str


def _table_ddl(table: str, unlogged: bool) -> str:
    return f"""
        CREATE {"UNLOGGED " if unlogged else ""}TABLE IF NOT EXISTS {table} (
            vehicle_location_id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
            registration_number varchar(20) NOT NULL,
            tracked_when timestamp(2) NOT NULL,
            longitude numeric(18, 4) NOT NULL,
            latitude numeric(18, 4) NOT NULL
        )
    """


def ddl_statements() -> List[str]:
    """DDL for both schemas, the three tables and their procedures, in order."""
    return [
        f"CREATE SCHEMA IF NOT EXISTS {DISK_SCHEMA}",
        f"CREATE SCHEMA IF NOT EXISTS {MEMORY_SCHEMA}",
        _table_ddl(DISK_TABLE, unlogged=False),
        _table_ddl(MEMORY_TABLE, unlogged=True),
        _table_ddl(COMPILED_MEMORY_TABLE, unlogged=True),
        f"""
        CREATE OR REPLACE PROCEDURE {DISK_INSERT_PROCEDURE}(
            p_registration_number varchar,
            p_tracked_when timestamp,
            p_longitude numeric,
            p_latitude numeric
        )
        LANGUAGE plpgsql
        AS $$
        BEGIN
            INSERT INTO {DISK_TABLE} (registration_number, tracked_when, longitude, latitude)
            VALUES (p_registration_number, p_tracked_when, p_longitude, p_latitude);
        END;
        $$
        """,
        f"""
        CREATE OR REPLACE PROCEDURE {MEMORY_INSERT_PROCEDURE}(
            p_registration_number varchar,
            p_tracked_when timestamp,
            p_longitude numeric,
            p_latitude numeric
        )
        LANGUAGE sql
        BEGIN ATOMIC
            INSERT INTO {MEMORY_TABLE} (registration_number, tracked_when, longitude, latitude)
            VALUES (p_registration_number, p_tracked_when, p_longitude, p_latitude);
        END
        """,
        f"""
        CREATE OR REPLACE PROCEDURE {COMPILED_MEMORY_BATCH_PROCEDURE}(p_row_count integer)
        LANGUAGE sql
        BEGIN ATOMIC
            INSERT INTO {COMPILED_MEMORY_TABLE}
                (registration_number, tracked_when, longitude, latitude)
            SELECT '{TEMPLATE_REGISTRATION_NUMBER}', localtimestamp(2),
                   {TEMPLATE_LONGITUDE}, {TEMPLATE_LATITUDE}
            FROM generate_series(1, p_row_count);
        END
        """,
    ]


def provision(conn: psycopg.Connection, reset: bool = False) -> None:
    """
    Create schemas, tables and procedures for every pathway.

    Parameters
    ----------
    conn : psycopg.Connection
        Connection used for DDL; statements run in one transaction block.
    reset : bool
        Drop both schemas (and all rows) before recreating them.

    Raises
    ------
    ProvisioningError
        Any DDL failure; nothing is applied.
    """
    try:
        with conn.transaction():
            with conn.cursor() as cur:
                if reset:
                    log.warning(
                        "Dropping benchmark schemas",
                        extra={"schemas": [DISK_SCHEMA, MEMORY_SCHEMA]},
                    )
                    cur.execute(f"DROP SCHEMA IF EXISTS {DISK_SCHEMA} CASCADE")
                    cur.execute(f"DROP SCHEMA IF EXISTS {MEMORY_SCHEMA} CASCADE")
                for statement in ddl_statements():
                    cur.execute(statement)
    except psycopg.Error as exc:
        raise ProvisioningError(f"provisioning failed: {exc}") from exc
    log.info("Schema provisioned", extra={"reset": reset})


def verify_provisioned(conn: psycopg.Connection, pathway: _ProvisionedObjects) -> None:
    """
    Raise ProvisioningError unless the pathway's table and procedure exist.
    """
    with conn.cursor() as cur:
        cur.execute(
            "SELECT to_regclass(%s) IS NOT NULL, to_regproc(%s) IS NOT NULL",
            (pathway.table, pathway.procedure),
        )
        row = cur.fetchone()
    table_ok, procedure_ok = row if row else (False, False)
    missing = [
        obj
        for obj, ok in ((pathway.table, table_ok), (pathway.procedure, procedure_ok))
        if not ok
    ]
    if missing:
        raise ProvisioningError(
            f"{pathway.name}: not provisioned, missing {', '.join(missing)}. "
            "Run `insert-bench provision` first.",
            pathway=pathway.name,
        )


def count_rows(conn: psycopg.Connection, table: str) -> int:
    with conn.cursor() as cur:
        cur.execute(f"SELECT count(*) FROM {table}")
        row = cur.fetchone()
    return int(row[0]) if row else 0


def truncate(conn: psycopg.Connection, table: str) -> None:
    """Empty a benchmark table and restart its identity sequence."""
    with conn.cursor() as cur:
        cur.execute(f"TRUNCATE TABLE {table} RESTART IDENTITY")


__all__ = [
    "COMPILED_MEMORY_BATCH_PROCEDURE",
    "COMPILED_MEMORY_TABLE",
    "DISK_INSERT_PROCEDURE",
    "DISK_TABLE",
    "MEMORY_INSERT_PROCEDURE",
    "MEMORY_TABLE",
    "TEMPLATE_LATITUDE",
    "TEMPLATE_LONGITUDE",
    "TEMPLATE_REGISTRATION_NUMBER",
    "count_rows",
    "ddl_statements",
    "provision",
    "truncate",
    "verify_provisioned",
]
