"""
Commission & impact calculator.

Pure functions: given an amount, an obligation type and a commission
percentage they return the settlement distribution. Used when an
obligation becomes fully paid and again by the settlement aggregator to
verify persisted figures, so both always agree.

Rounding: commission is rounded half-up to cents.
"""
import enum
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Mapping, Optional, Union

from models.obligation import ObligationType
from .exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


class ImpactSign(str, enum.Enum):
     """Effect of a settled obligation on the owner's balance."""
     CREDIT = "credit"  # owner receives owner_amount
     DEBIT = "debit"  # full amount deducted from owner
     NONE = "none"  # tracking only


DEFAULT_IMPACT_SIGNS = {
     ObligationType.RENT: ImpactSign.CREDIT,
     ObligationType.EXPENSES: ImpactSign.DEBIT,
     ObligationType.MAINTENANCE: ImpactSign.DEBIT,
     ObligationType.TAX: ImpactSign.DEBIT,
     ObligationType.SERVICE: ImpactSign.DEBIT,
}


@dataclass(frozen=True)
class ImpactPolicy:
     """Type -> sign table used to compute owner impact."""

     signs: Mapping[ObligationType, ImpactSign] = field(
          default_factory=lambda: dict(DEFAULT_IMPACT_SIGNS)
     )

     def sign_for(self, obligation_type: ObligationType) -> ImpactSign:
          return self.signs.get(obligation_type, ImpactSign.NONE)

     @classmethod
     def from_overrides(cls, overrides: Mapping[str, str]) -> "ImpactPolicy":
          """
          Build a policy from {"tax": "none", ...} on top of the defaults.

          Raises:
               ValueError: unknown obligation type or sign
          """
          signs = dict(DEFAULT_IMPACT_SIGNS)
          for type_name, sign_name in overrides.items():
               try:
                    obligation_type = ObligationType(type_name)
                    sign = ImpactSign(sign_name)
               except ValueError:
                    raise ValueError(f"Invalid impact override {type_name}={sign_name}")
               signs[obligation_type] = sign
          return cls(signs=signs)


@dataclass(frozen=True)
class Distribution:
     commission_amount: Decimal
     owner_amount: Decimal
     owner_impact: Decimal
     agency_impact: Decimal


def to_decimal(value: Number, field_name: str = "amount") -> Decimal:
     """Convert to Decimal, raising ValidationError on garbage."""
     if isinstance(value, Decimal):
          result = value
     else:
          try:
               # str() keeps floats like 0.1 from dragging binary noise along
               result = Decimal(str(value))
          except (InvalidOperation, ValueError, TypeError):
               raise ValidationError(f"{field_name} must be a number, got {value!r}")
     if not result.is_finite():
          raise ValidationError(f"{field_name} must be a finite number")
     return result


def round_money(value: Number) -> Decimal:
     """Round to cents, half-up."""
     return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Number, field_name: str = "amount") -> Decimal:
     """
     Parse a caller-supplied amount of money.

     Unlike round_money, sub-cent precision is refused instead of being
     rounded away.

     Raises:
          ValidationError: not a number, or more than two decimals
     """
     result = to_decimal(value, field_name)
     if result != result.quantize(CENT, rounding=ROUND_HALF_UP):
          raise ValidationError(f"{field_name} must have at most two decimals, got {result}")
     return result.quantize(CENT)


def calculate_commission(
     amount: Number,
     obligation_type: ObligationType,
     commission_percentage: Optional[Number] = None,
) -> Decimal:
     """
     Agency commission for a settled obligation.

     Only rent carries commission; commission_percentage is a 0-1 fraction.
     """
     amount = to_decimal(amount)
     if obligation_type != ObligationType.RENT or commission_percentage is None:
          return ZERO
     percentage = to_decimal(commission_percentage, "commission_percentage")
     if percentage < 0 or percentage > 1:
          raise ValidationError(
               f"commission_percentage must be between 0 and 1, got {percentage}"
          )
     return round_money(amount * percentage)


def distribution_for_commission(
     amount: Number,
     obligation_type: ObligationType,
     commission_amount: Number,
     policy: Optional[ImpactPolicy] = None,
) -> Distribution:
     """Distribution for an already known commission amount."""
     policy = policy or ImpactPolicy()
     amount = round_money(amount)
     if amount < 0:
          raise ValidationError(f"amount must be >= 0, got {amount}")
     commission = round_money(commission_amount) if obligation_type == ObligationType.RENT else ZERO
     if commission < 0 or commission > amount:
          raise ValidationError(f"commission {commission} outside 0..{amount}")

     owner_amount = amount - commission

     sign = policy.sign_for(obligation_type)
     if sign == ImpactSign.CREDIT:
          owner_impact = owner_amount
     elif sign == ImpactSign.DEBIT:
          owner_impact = -amount
     else:
          owner_impact = ZERO

     return Distribution(
          commission_amount=commission,
          owner_amount=owner_amount,
          owner_impact=owner_impact,
          agency_impact=commission,
     )


def calculate_distribution(
     amount: Number,
     obligation_type: ObligationType,
     commission_percentage: Optional[Number] = None,
     policy: Optional[ImpactPolicy] = None,
) -> Distribution:
     """
     Split a settled obligation between owner and agency.

     Example:
          >>> d = calculate_distribution(100000, ObligationType.RENT, Decimal("0.10"))
          >>> (d.commission_amount, d.owner_amount, d.owner_impact, d.agency_impact)
          (Decimal('10000.00'), Decimal('90000.00'), Decimal('90000.00'), Decimal('10000.00'))
     """
     commission = calculate_commission(amount, obligation_type, commission_percentage)
     return distribution_for_commission(amount, obligation_type, commission, policy)
