from datetime import date
from decimal import Decimal

from services.directory import ContractInfo, InMemoryContractDirectory, OwnerInfo


def make_directory():
    return InMemoryContractDirectory(
        contracts=[
            ContractInfo(1, 7, 11, date(2024, 1, 1), date(2024, 6, 30), Decimal("1000"), Decimal("0.12")),
            ContractInfo(2, 7, 12, date(2024, 3, 15), date(2025, 3, 14), Decimal("2000"), None),
            ContractInfo(3, 8, 13, date(2024, 1, 1), date(2024, 12, 31), Decimal("3000"), None),
        ],
        apartments={11: 100, 12: 100, 13: 200, 14: None},
        owners=[
            OwnerInfo(100, "Owner A", Decimal("0.07"), Decimal("0")),
            OwnerInfo(200, "Owner B", None, Decimal("0")),
        ],
    )


def test_commission_prefers_contract_then_owner():
    directory = make_directory()
    assert directory.commission_for(1, None) == Decimal("0.12")
    assert directory.commission_for(2, None) == Decimal("0.07")
    assert directory.commission_for(3, None) == Decimal("0")
    assert directory.commission_for(None, 12) == Decimal("0.07")
    assert directory.commission_for(None, 14) == Decimal("0")


def test_owner_and_apartment_routing():
    directory = make_directory()
    assert directory.owner_for(3, None) == 200
    assert directory.owner_for(None, 11) == 100
    assert directory.owner_for(99, 13) == 200
    assert directory.apartment_for(2, None) == 12
    assert directory.apartment_for(2, 14) == 14
    assert directory.apartment_ids_for_owner(100) == [11, 12]
    assert directory.contract_ids_for_apartments(7, [12, 13]) == [2]


def test_contract_lookup_is_scoped_to_account():
    directory = make_directory()
    assert directory.get_contract(3, 8).rent_amount == Decimal("3000")
    assert directory.get_contract(3, 7) is None
    assert directory.get_contract(42) is None


def test_active_contracts_overlap_the_window():
    directory = make_directory()
    march = directory.active_contracts(7, date(2024, 3, 1), date(2024, 3, 31))
    assert [c.contract_id for c in march] == [1, 2]
    assert [c.contract_id for c in directory.active_contracts(7, date(2024, 3, 1))] == [1]
    assert [c.contract_id for c in directory.active_contracts(7, date(2024, 7, 1), date(2024, 7, 31))] == [2]


def test_sql_directory_reads_seeded_tables(directory):
    assert directory.commission_for(100, None) == Decimal("0.10")
    assert directory.commission_for(200, None) == Decimal("0.05")
    assert directory.owner_for(200, None) == 2
    assert directory.get_owner(1).name == "Laura Gómez"
    assert directory.apartment_ids_for_owner(1) == [10]
    assert directory.contract_ids_for_apartments(1, [10, 20]) == [100, 200]
    assert [c.contract_id for c in directory.active_contracts(1, date(2024, 3, 1), date(2024, 3, 31))] == [100, 200]
