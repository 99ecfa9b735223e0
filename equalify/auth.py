import time, logging
from typing import Optional
from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import RedirectResponse
from authlib.integrations.starlette_client import OAuth
from authlib.jose import jwt
from authlib.jose.errors import JoseError
from sqlmodel import Session, select
from equalify.config import config
from equalify.db import engine
from equalify.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()
oauth = OAuth()
oauth.register(
    name='google',
    client_id=config.GOOGLE_CLIENT_ID,
    client_secret=config.GOOGLE_CLIENT_SECRET,
    server_metadata_url='https://accounts.google.com/.well-known/openid-configuration',
    client_kwargs={'scope': 'openid email profile'},
)


def create_access_token(user_id: int, expires_in: Optional[int] = None) -> str:
    now = int(time.time())
    payload = {"sub": str(user_id), "iat": now, "exp": now + (expires_in or config.JWT_EXPIRES_IN)}
    return jwt.encode({"alg": "HS256"}, payload, config.JWT_SECRET).decode("utf-8")


def decode_access_token(token: str) -> Optional[int]:
    try:
        claims = jwt.decode(token, config.JWT_SECRET)
        claims.validate()
        return int(claims["sub"])
    except (JoseError, KeyError, ValueError) as e:
        logger.warning("rejected access token: %s", e)
        return None


def require_user(request: Request):
    """The authenticated user, from a bearer token or the login session."""
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        user_id = decode_access_token(header.split(" ", 1)[1].strip())
        if user_id is None:
            raise HTTPException(status_code=401, detail="Not authorized, token failed")
        with Session(engine) as s:
            user = s.get(User, user_id)
            if not user:
                raise HTTPException(status_code=401, detail="Not authorized, unknown user")
            return {"id": user.id, "name": user.name, "email": user.email}
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401, detail="Login required")
    return user


@router.get("/login")
async def login(request: Request):
    redirect_uri = request.url_for('auth_callback')
    return await oauth.google.authorize_redirect(request, str(redirect_uri))

@router.get("/auth", name="auth_callback")
async def auth(request: Request):
    logger.debug("Starting /auth callback")
    try:
        token = await oauth.google.authorize_access_token(request)
    except Exception as e:
        logger.exception("authorize_access_token() failed: %s", e)
        raise HTTPException(status_code=500, detail="OAuth token exchange failed; check server logs")

    userinfo = token.get("userinfo") if isinstance(token, dict) else None
    if not userinfo:
        try:
            resp = await oauth.google.get("https://openidconnect.googleapis.com/v1/userinfo", token=token)
            userinfo = resp.json()
        except Exception as e:
            logger.exception("OAuth2 userinfo lookup failed: %s", e)
            raise HTTPException(status_code=500, detail="Authentication failed; check server logs")

    if not userinfo or not isinstance(userinfo, dict):
        raise HTTPException(status_code=500, detail="Authentication failed: invalid userinfo")

    google_id = userinfo.get("sub") or userinfo.get("id")
    email = (userinfo.get("email") or "").lower() or None
    name = userinfo.get("name") or email or "GoogleUser"

    with Session(engine) as s:
        user = None
        if google_id:
            user = s.exec(select(User).where(User.google_id == google_id)).first()
        if not user and email:
            user = s.exec(select(User).where(User.email == email)).first()
        if not user:
            user = User(name=name, email=email, google_id=google_id)
            s.add(user); s.commit(); s.refresh(user)
            logger.info("registered user %s", user.id)
        else:
            changed = False
            if google_id and user.google_id != google_id:
                user.google_id = google_id; changed = True
            if email and user.email != email:
                user.email = email; changed = True
            if user.name != name:
                user.name = name; changed = True
            if changed:
                s.add(user); s.commit()
        request.session['user'] = {"id": user.id, "name": user.name, "email": user.email}
        request.session['token'] = create_access_token(user.id)
    return RedirectResponse(url="/")

@router.get("/token")
def issue_token(request: Request):
    """Hand the logged-in browser a bearer token for API calls."""
    user = require_user(request)
    return {"token": create_access_token(user["id"]), "user": user}

@router.get("/logout")
def logout(request: Request):
    request.session.pop('user', None)
    request.session.pop('token', None)
    return RedirectResponse(url="/")
