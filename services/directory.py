"""
Read-only lookups into the contract / apartment / owner context.

Those tables belong to the CRUD layer. The ledger only needs to route an
obligation to its owner and to resolve the commission percentage:
contract value first, then the owner's default, then 0.

ContractDirectory reads the database; InMemoryContractDirectory serves
fixed data (tests, imports, what-if recomputation).
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from models import Contract, Apartment, Owner


@dataclass(frozen=True)
class OwnerInfo:
     owner_id: int
     name: str
     commission_percentage: Optional[Decimal] = None
     balance: Decimal = Decimal("0")


@dataclass(frozen=True)
class ContractInfo:
     contract_id: int
     user_id: int
     apartment_id: Optional[int]
     start_date: date
     end_date: date
     rent_amount: Decimal
     commission_percentage: Optional[Decimal] = None


class BaseDirectory:
     """Resolution rules shared by every directory implementation."""

     def _contract(self, contract_id: int) -> Optional[ContractInfo]:
          raise NotImplementedError

     def _apartment_owner(self, apartment_id: int) -> Optional[int]:
          raise NotImplementedError

     def _apartments_of(self, owner_id: int) -> List[int]:
          raise NotImplementedError

     def _contracts_of(self, user_id: int) -> List[ContractInfo]:
          raise NotImplementedError

     def get_owner(self, owner_id: int) -> Optional[OwnerInfo]:
          raise NotImplementedError

     def get_contract(self, contract_id: int, user_id: Optional[int] = None) -> Optional[ContractInfo]:
          """Contract by id, optionally restricted to one agency account."""
          contract = self._contract(contract_id)
          if contract is None:
               return None
          if user_id is not None and contract.user_id != user_id:
               return None
          return contract

     def apartment_for(self, contract_id: Optional[int], apartment_id: Optional[int]) -> Optional[int]:
          """Apartment of an obligation: its own, else its contract's."""
          if apartment_id is not None:
               return apartment_id
          if contract_id is not None:
               contract = self._contract(contract_id)
               if contract is not None:
                    return contract.apartment_id
          return None

     def owner_for(self, contract_id: Optional[int], apartment_id: Optional[int]) -> Optional[int]:
          """Owner of the contract's apartment, else of the given apartment."""
          if contract_id is not None:
               contract = self._contract(contract_id)
               if contract is not None and contract.apartment_id is not None:
                    owner_id = self._apartment_owner(contract.apartment_id)
                    if owner_id is not None:
                         return owner_id
          if apartment_id is not None:
               return self._apartment_owner(apartment_id)
          return None

     def commission_for(self, contract_id: Optional[int], apartment_id: Optional[int]) -> Decimal:
          """Commission fraction that applies to an obligation."""
          if contract_id is not None:
               contract = self._contract(contract_id)
               if contract is not None and contract.commission_percentage is not None:
                    return Decimal(contract.commission_percentage)
          owner_id = self.owner_for(contract_id, apartment_id)
          if owner_id is not None:
               owner = self.get_owner(owner_id)
               if owner is not None and owner.commission_percentage is not None:
                    return Decimal(owner.commission_percentage)
          return Decimal("0")

     def apartment_ids_for_owner(self, owner_id: int) -> List[int]:
          return sorted(self._apartments_of(owner_id))

     def contract_ids_for_apartments(self, user_id: int, apartment_ids: Iterable[int]) -> List[int]:
          wanted = set(apartment_ids)
          return sorted(c.contract_id for c in self._contracts_of(user_id) if c.apartment_id in wanted)

     def active_contracts(self, user_id: int, start: date, end: Optional[date] = None) -> List[ContractInfo]:
          """Contracts of an account whose term overlaps start..end (inclusive)."""
          end = end or start
          return sorted(
               (c for c in self._contracts_of(user_id) if c.start_date <= end and c.end_date >= start),
               key=lambda c: c.contract_id,
          )


class ContractDirectory(BaseDirectory):
     """Directory backed by the contracts / apartments / owners tables."""

     def __init__(self, db: Session):
          self.db = db

     @staticmethod
     def _to_info(contract: Contract) -> ContractInfo:
          return ContractInfo(
               contract_id=contract.id,
               user_id=contract.user_id,
               apartment_id=contract.apartment_id,
               start_date=contract.start_date,
               end_date=contract.end_date,
               rent_amount=Decimal(contract.rent_amount),
               commission_percentage=(
                    Decimal(contract.commission_percentage)
                    if contract.commission_percentage is not None else None
               ),
          )

     def _contract(self, contract_id: int) -> Optional[ContractInfo]:
          contract = self.db.get(Contract, contract_id)
          return self._to_info(contract) if contract else None

     def _apartment_owner(self, apartment_id: int) -> Optional[int]:
          apartment = self.db.get(Apartment, apartment_id)
          return apartment.owner_id if apartment else None

     def _apartments_of(self, owner_id: int) -> List[int]:
          rows = self.db.query(Apartment.id).filter(Apartment.owner_id == owner_id).all()
          return [row[0] for row in rows]

     def _contracts_of(self, user_id: int) -> List[ContractInfo]:
          contracts = self.db.query(Contract).filter(Contract.user_id == user_id).all()
          return [self._to_info(c) for c in contracts]

     def get_owner(self, owner_id: int) -> Optional[OwnerInfo]:
          owner = self.db.get(Owner, owner_id)
          if owner is None:
               return None
          return OwnerInfo(
               owner_id=owner.id,
               name=owner.name,
               commission_percentage=(
                    Decimal(owner.commission_percentage)
                    if owner.commission_percentage is not None else None
               ),
               balance=Decimal(owner.balance or 0),
          )


class InMemoryContractDirectory(BaseDirectory):
     """
     Directory over plain data.

     Args:
          contracts: ContractInfo records
          apartments: apartment_id -> owner_id
          owners: OwnerInfo records
     """

     def __init__(
          self,
          contracts: Iterable[ContractInfo] = (),
          apartments: Optional[Dict[int, Optional[int]]] = None,
          owners: Iterable[OwnerInfo] = (),
     ):
          self.contracts = {c.contract_id: c for c in contracts}
          self.apartments = dict(apartments or {})
          self.owners = {o.owner_id: o for o in owners}

     def _contract(self, contract_id: int) -> Optional[ContractInfo]:
          return self.contracts.get(contract_id)

     def _apartment_owner(self, apartment_id: int) -> Optional[int]:
          return self.apartments.get(apartment_id)

     def _apartments_of(self, owner_id: int) -> List[int]:
          return [apt_id for apt_id, oid in self.apartments.items() if oid == owner_id]

     def _contracts_of(self, user_id: int) -> List[ContractInfo]:
          return [c for c in self.contracts.values() if c.user_id == user_id]

     def get_owner(self, owner_id: int) -> Optional[OwnerInfo]:
          return self.owners.get(owner_id)
