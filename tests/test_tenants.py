"""Tests for the SQLite tenant repository."""

import sqlite3

import pytest

from praxischat import TenantNotFoundError, TenantRepository, TenantVariables

from conftest import TestConstants


def test_create_and_lookup_by_slug(tenant_repository, tenant):
    found = tenant_repository.get_tenant_by_slug(TestConstants.TENANT_SLUG)

    assert found == tenant
    assert found.name == "Hausarztpraxis Dr. Muster"


def test_variables_round_trip(tenant_repository, tenant, tenant_variables):
    assert tenant_repository.get_tenant_variables(tenant.id) == tenant_variables


def test_unknown_slug(tenant_repository):
    with pytest.raises(TenantNotFoundError, match="unbekannt"):
        tenant_repository.get_tenant_by_slug("unbekannt")


def test_unknown_tenant_variables(tenant_repository):
    with pytest.raises(TenantNotFoundError):
        tenant_repository.get_tenant_variables("missing-id")


def test_duplicate_slug_rejected(tenant_repository, tenant, tenant_variables):
    with pytest.raises(ValueError, match="already exists"):
        tenant_repository.create_tenant(tenant.slug, tenant_variables)
    assert tenant_repository.count_tenants() == 1


def test_count_tenants(tenant_repository, tenant, other_tenant):
    assert tenant_repository.count_tenants() == 2


def test_explicit_name(tenant_repository, tenant_variables):
    created = tenant_repository.create_tenant(
        "praxis-b", tenant_variables, name="Praxis B"
    )
    assert created.name == "Praxis B"


def test_settings_stored_with_original_keys(db_path, tenant):
    with sqlite3.connect(str(db_path)) as conn:
        (raw,) = conn.execute(
            "SELECT variables FROM tenant_settings WHERE tenant_id = ?",
            (tenant.id,),
        ).fetchone()

    assert '"Praxisname": "Hausarztpraxis Dr. Muster"' in raw
    assert '"Kontakt_Tel": "09401 12345"' in raw


def test_missing_variable_keys_default_to_empty(db_path, tenant_repository, tenant):
    with sqlite3.connect(str(db_path)) as conn:
        conn.execute(
            "UPDATE tenant_settings SET variables = ? WHERE tenant_id = ?",
            ('{"Praxisname": "Praxis Nur-Name"}', tenant.id),
        )

    variables = tenant_repository.get_tenant_variables(tenant.id)

    assert variables == TenantVariables(
        display_name="Praxis Nur-Name",
        location="",
        contact_phone="",
        average_response_time="",
    )


def test_non_object_settings_rejected(db_path, tenant_repository, tenant):
    with sqlite3.connect(str(db_path)) as conn:
        conn.execute(
            "UPDATE tenant_settings SET variables = ? WHERE tenant_id = ?",
            ("[1, 2]", tenant.id),
        )

    with pytest.raises(ValueError, match="JSON object"):
        tenant_repository.get_tenant_variables(tenant.id)


def test_schema_creation_is_idempotent(db_path, tenant):
    reopened = TenantRepository(db_path)
    assert reopened.get_tenant_by_slug(TestConstants.TENANT_SLUG) == tenant
