from __future__ import annotations

import pytest

from tenantpool.models import derive_database_name


def test_spaces_become_underscores() -> None:
    assert derive_database_name(10, "Mister Suits") == "DB_10_Mister_Suits"


def test_surrounding_whitespace_is_trimmed() -> None:
    assert derive_database_name(7, "  Acme Corp \t") == "DB_7_Acme_Corp"


def test_each_internal_space_is_replaced() -> None:
    assert derive_database_name(3, "A  B") == "DB_3_A__B"


@pytest.mark.parametrize(
    ("tenant_id", "tenant_name"),
    [(10, "Mister Suits"), (1, " lead "), (42, "Alpha Beta Gamma")],
)
def test_derivation_is_stable(tenant_id: int, tenant_name: str) -> None:
    first = derive_database_name(tenant_id, tenant_name)
    second = derive_database_name(tenant_id, tenant_name)
    assert first == second
    assert " " not in first
    assert first == first.strip()


@pytest.mark.parametrize("tenant_name", ["", "   "])
def test_blank_tenant_name_is_rejected(tenant_name: str) -> None:
    with pytest.raises(ValueError, match="Tenant name"):
        derive_database_name(1, tenant_name)
