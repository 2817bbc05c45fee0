"""
Ledger configuration loaded from the environment.

Usage:
     from config import get_impact_policy, RENT_DUE_DAY
"""
import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]

JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = "HS256"

# Day of month rent obligations fall due when billed
RENT_DUE_DAY = int(os.getenv("LEDGER_RENT_DUE_DAY", "10"))

# Overrides for the type -> impact sign table, e.g. "tax=none,service=debit"
IMPACT_SIGNS = os.getenv("LEDGER_IMPACT_SIGNS", "")


def parse_impact_overrides(raw: str) -> dict:
     """Parse "type=sign,type=sign" into a dict. Blank entries are ignored."""
     overrides = {}
     for chunk in raw.split(","):
          chunk = chunk.strip()
          if not chunk:
               continue
          if "=" not in chunk:
               raise ValueError(f"Invalid impact override '{chunk}', expected type=sign")
          key, value = chunk.split("=", 1)
          overrides[key.strip().lower()] = value.strip().lower()
     return overrides


def get_impact_policy():
     """Build the impact policy from LEDGER_IMPACT_SIGNS on top of the defaults."""
     from services.commission import ImpactPolicy
     return ImpactPolicy.from_overrides(parse_impact_overrides(IMPACT_SIGNS))
