"""SQLite-backed tenant configuration repository."""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path

from .config import config
from .models import Tenant, TenantVariables

logger = config.get_logger(__name__)


class TenantNotFoundError(LookupError):
    """Raised when a tenant or its settings do not exist."""


class TenantRepository:
    """Reads tenants and their display variables from the metadata database."""

    def __init__(self, db_path: Path | None = None) -> None:
        """Initialize the repository and ensure the schema exists.

        Args:
            db_path: Path to the SQLite database. If None, uses
                config.DATABASE_PATH.
        """
        self.db_path = Path(db_path if db_path is not None else config.DATABASE_PATH)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self._create_tables()

    def _create_tables(self) -> None:
        """Create tenant tables if they don't exist."""
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS tenants (
                    id TEXT PRIMARY KEY,
                    slug TEXT NOT NULL UNIQUE,
                    name TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS tenant_settings (
                    tenant_id TEXT PRIMARY KEY,
                    variables TEXT NOT NULL DEFAULT '{}',
                    FOREIGN KEY (tenant_id) REFERENCES tenants (id)
                )
            """)
            conn.commit()

    def get_tenant_by_slug(self, slug: str) -> Tenant:
        """Look up a tenant by its slug.

        Returns:
            The matching Tenant.

        Raises:
            TenantNotFoundError: If no tenant has this slug.
        """
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, slug, name FROM tenants WHERE slug = ?",
                (slug,),
            )
            row = cursor.fetchone()

        if row is None:
            msg = f"Tenant not found: {slug}"
            raise TenantNotFoundError(msg)
        return Tenant(id=row[0], slug=row[1], name=row[2] or "")

    def get_tenant_variables(self, tenant_id: str) -> TenantVariables:
        """Load the display variables configured for a tenant.

        Returns:
            TenantVariables parsed from the stored JSON object.

        Raises:
            TenantNotFoundError: If the tenant has no settings row.
            ValueError: If the stored variables are not a JSON object.
        """
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT variables FROM tenant_settings WHERE tenant_id = ?",
                (tenant_id,),
            )
            row = cursor.fetchone()

        if row is None:
            msg = f"Tenant settings not found: {tenant_id}"
            raise TenantNotFoundError(msg)

        variables = json.loads(row[0])
        if not isinstance(variables, dict):
            msg = f"Tenant settings for {tenant_id} must be a JSON object"
            raise ValueError(msg)  # noqa: TRY004
        return TenantVariables.from_settings(variables)

    def create_tenant(
        self,
        slug: str,
        variables: TenantVariables,
        name: str | None = None,
    ) -> Tenant:
        """Create a tenant together with its settings row.

        Returns:
            The newly created Tenant.

        Raises:
            ValueError: If the slug is already taken.
        """
        tenant = Tenant(
            id=str(uuid.uuid4()),
            slug=slug,
            name=name or variables.display_name,
        )
        try:
            with sqlite3.connect(str(self.db_path)) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "INSERT INTO tenants (id, slug, name) VALUES (?, ?, ?)",
                    (tenant.id, tenant.slug, tenant.name),
                )
                cursor.execute(
                    "INSERT INTO tenant_settings (tenant_id, variables) VALUES (?, ?)",
                    (tenant.id, json.dumps(variables.to_settings(), ensure_ascii=False)),
                )
                conn.commit()
        except sqlite3.IntegrityError as exc:
            msg = f"Tenant slug already exists: {slug}"
            raise ValueError(msg) from exc

        logger.info("Created tenant %s (%s)", tenant.slug, tenant.id)
        return tenant

    def count_tenants(self) -> int:
        """Return the number of configured tenants."""  # noqa: DOC201
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM tenants")
            return int(cursor.fetchone()[0])
