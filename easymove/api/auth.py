from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from easymove.schemas.auth import TokenOut
from easymove.models.user import User
from easymove.db.session import get_db
from easymove.core.security import create_access_token, verify_password
from easymove.core.audit_log import log_login

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.username == form_data.username))
    user = res.scalars().first()
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    await log_login(db, int(user.id), form_data.username)
    await db.commit()

    token = create_access_token(str(user.id), user.role)
    return {"access_token": token}
