from fastapi import APIRouter, Depends, status
from ..schemas import SignIn, UserCreate
from ..config import Settings
from ..dependencies import get_credential_store, get_settings
from ..OAuth2 import signin, signup

router = APIRouter(tags=["Authentication"])


@router.post("/signup", status_code=status.HTTP_200_OK)
async def create_user(user: UserCreate, store=Depends(get_credential_store)):
    await signup(store, user.name, user.username, user.password)
    return {"success": True, "message": "Successfully created new user."}


@router.post("/signin", status_code=status.HTTP_200_OK)
async def login(
    user_cred: SignIn,
    store=Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
):
    token = await signin(store, user_cred.username, user_cred.password, settings)
    return {"success": True, "token": token}
