from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..db.session import get_db
from ..schemas.common import LoginIn, SeedAdminIn, Token
from ..services import gateway, operators

router = APIRouter(prefix="/api", tags=["auth"])

@router.post("/auth/login", response_model=Token)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    token, op = gateway.login(db, payload.email, payload.password)
    return Token(access_token=token, role=op.role)

@router.post("/seed/admin")
def seed_admin(payload: SeedAdminIn, db: Session = Depends(get_db)):
    created = operators.bootstrap_admin(db, payload.email, payload.password)
    return {"ok": True} if created else {"ok": True, "note": "user exists"}
