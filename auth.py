"""
Bearer token verification shared by the API routers.

The token payload's "id" is the agency account every ledger query is
scoped by.
"""
from fastapi import HTTPException, Request
from jose import JWTError, jwt

from config import JWT_SECRET, JWT_ALGORITHM


def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=401, detail="Missing token")
     token = auth.split(" ")[1]
     try:
          payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=403, detail="Invalid token")
     if payload.get("id") is None:
          raise HTTPException(status_code=403, detail="Token carries no account id")
     return payload


def create_token(user_id: int, **claims) -> str:
     """Issue a token for an agency account (scripts and tests)."""
     return jwt.encode({"id": user_id, **claims}, JWT_SECRET, algorithm=JWT_ALGORITHM)
