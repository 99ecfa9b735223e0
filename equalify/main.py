import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from equalify.config import config
from equalify.db import init_db
from equalify.errors import LedgerError
from equalify.auth import router as auth_router
from equalify.routes.budget import router as budget_router
from equalify.routes.expense import router as expense_router
from equalify.routes.friend import router as friend_router
from equalify.routes.group import router as group_router
from equalify.routes.user import router as user_router

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


app = FastAPI(title="Equalify")

# Session middleware
app.add_middleware(SessionMiddleware, secret_key=config.SECRET_KEY)

# include routers
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(friend_router)
app.include_router(group_router)
app.include_router(expense_router)
app.include_router(budget_router)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def on_startup():
    init_db()


@app.get("/")
def index(request: Request):
    return {"name": "Equalify", "user": request.session.get("user")}
