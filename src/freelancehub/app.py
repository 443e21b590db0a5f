# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from freelancehub.auth import federated
from freelancehub.auth.local import authenticate_local, register_local
from freelancehub.auth.session import COOKIE_NAME, DEFAULT_MAX_AGE_SECONDS, sign_session
from freelancehub.core.accounts import Account
from freelancehub.core.errors import (
    AlreadyExists,
    InvalidCredential,
    InvalidRole,
    NotFound,
    ProviderError,
    StoreError,
    UploadError,
)
from freelancehub.core.roles import ROLE_PAGES, Role, auth_url, home_url, parse_role
from freelancehub.core.utils import parse_int
from freelancehub.infra import db as dbmod
from freelancehub.infra.db import get_db
from freelancehub.permissions import (
    CurrentUser,
    cookie_settings,
    current_user_optional,
    load_user_from_request,
    require_role,
    require_user,
)
from freelancehub.services.directory_service import get_freelancer, search_freelancers
from freelancehub.services.profile_service import (
    GENDERS,
    clean_profile_form,
    create_profile,
    get_profile,
    update_profile,
)
from freelancehub.services.project_service import create_project, list_client_projects, list_recent_projects
from freelancehub.services.upload_service import MAX_UPLOAD_BYTES, delete_photo, save_photo

load_dotenv()

logging.basicConfig(
    level=os.getenv("FH_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if dbmod.engine is None:
        dbmod.configure()
    dbmod.init_db()
    yield


app = FastAPI(
    title="freelancehub",
    description="Marketplace connecting clients and freelancers.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def _auth_middleware(request: Request, call_next):
    request.state.user = load_user_from_request(request)
    return await call_next(request)


BASE_DIR = Path(__file__).resolve().parent

DATA_DIR = Path(os.getenv("FH_DATA_DIR", "data")).resolve()
DATA_DIR.mkdir(parents=True, exist_ok=True)

UPLOAD_DIR = Path(os.getenv("FH_UPLOAD_DIR", str(DATA_DIR / "uploads"))).resolve()
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

AUTH_ERRORS = {
    "login": "Invalid email or password.",
    "signup": "Please enter a valid email and a password of at least 6 characters.",
    "mismatch": "Passwords do not match.",
    "exists": "An account with this email already exists. Log in instead.",
    "provider": "Google sign-in failed. Please try again.",
    "server": "Something went wrong on our side. Please try again.",
}


@app.exception_handler(StoreError)
async def _store_error_handler(request: Request, exc: StoreError):
    logger.error("Unhandled store error on %s: %s", request.url.path, exc, exc_info=exc)
    return PlainTextResponse("Service temporarily unavailable", status_code=503)


def _render(request: Request, template_name: str, ctx: dict, status_code: int = 200):
    """TemplateResponse wrapper injecting the current user and role pages."""
    base_ctx = {
        "current_user": getattr(request.state, "user", None),
        "role_pages": ROLE_PAGES,
        "Role": Role,
    }
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def _role_or_400(value: str) -> Role:
    try:
        return parse_role(value)
    except InvalidRole as e:
        logger.warning("Rejected request with %s", e)
        raise HTTPException(status_code=400, detail="Invalid role")


def _login_response(account: Account, url: str) -> RedirectResponse:
    resp = _redirect(url)
    resp.set_cookie(
        COOKIE_NAME,
        sign_session(account),
        max_age=DEFAULT_MAX_AGE_SECONDS,
        **cookie_settings(),
    )
    return resp


async def _store_uploaded_photo(form, user: CurrentUser) -> Optional[str]:
    """Save the optional 'photo' file field; None when nothing was uploaded."""
    upload = form.get("photo")
    if not getattr(upload, "filename", ""):
        return None
    # Never buffer more than one byte past the limit; save_photo rejects oversize
    content = await upload.read(MAX_UPLOAD_BYTES + 1)
    return save_photo(UPLOAD_DIR, user.role, user.id, upload.filename, content, max_bytes=MAX_UPLOAD_BYTES)


# ------------------ Pages ------------------


@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    u = current_user_optional(request)
    if u:
        return _redirect(home_url(u.role))
    return _render(request, "index.html", {})


def _auth_page(request: Request, role: Role, error: str):
    u = current_user_optional(request)
    if u:
        return _redirect(home_url(u.role))
    return _render(
        request,
        ROLE_PAGES[role]["auth_template"],
        {"role": role, "error": AUTH_ERRORS.get(error, "")},
    )


@app.get("/client_auth", response_class=HTMLResponse)
def client_auth(request: Request, error: str = ""):
    return _auth_page(request, Role.CLIENT, error)


@app.get("/freelancer_auth", response_class=HTMLResponse)
def freelancer_auth(request: Request, error: str = ""):
    return _auth_page(request, Role.FREELANCER, error)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "freelancehub"}


# ------------------ Local auth ------------------


@app.post("/login")
def login_post(
    email: str = Form(""),
    password: str = Form(""),
    role: str = Form(""),
    db: Session = Depends(get_db),
):
    r = _role_or_400(role)
    try:
        account = authenticate_local(db, email, password, r)
    except (NotFound, InvalidCredential) as e:
        logger.warning("Login failed: %s", e)
        return _redirect(f"{auth_url(r)}?error=login")
    except StoreError as e:
        logger.error("Login error for %s (%s): %s", email, r.value, e, exc_info=True)
        return _redirect(f"{auth_url(r)}?error=login")
    return _login_response(account, home_url(r))


@app.post("/signup")
def signup_post(
    email: str = Form(""),
    password: str = Form(""),
    confirm: str = Form(""),
    role: str = Form(""),
    db: Session = Depends(get_db),
):
    r = _role_or_400(role)
    if password != confirm:
        return _redirect(f"{auth_url(r)}?error=mismatch")
    try:
        account = register_local(db, email, password, r)
    except ValueError as e:
        logger.info("Signup rejected: %s", e)
        return _redirect(f"{auth_url(r)}?error=signup")
    except AlreadyExists as e:
        logger.warning("Signup conflict: %s", e)
        return _redirect(f"{auth_url(r)}?error=exists")
    except StoreError as e:
        logger.error("Signup error for %s (%s): %s", email, r.value, e, exc_info=True)
        return _redirect(f"{auth_url(r)}?error=server")
    return _login_response(account, "/profile/complete")


@app.api_route("/logout", methods=["GET", "POST"])
def logout(request: Request):
    resp = _redirect("/")
    resp.delete_cookie(COOKIE_NAME)
    return resp


# ------------------ Federated auth ------------------


@app.get("/auth/google")
def google_start(role: str = ""):
    r = _role_or_400(role)
    state, nonce = federated.sign_state(r)
    try:
        url = federated.authorization_url(state)
    except ProviderError as e:
        logger.error("Cannot start Google sign-in: %s", e)
        return _redirect(f"{auth_url(r)}?error=provider")
    resp = _redirect(url)
    resp.set_cookie(
        federated.STATE_COOKIE_NAME,
        nonce,
        max_age=federated.STATE_MAX_AGE_SECONDS,
        **cookie_settings(),
    )
    return resp


@app.get("/auth/google/callback")
async def google_callback(
    request: Request,
    code: str = "",
    state: str = "",
    error: str = "",
    db: Session = Depends(get_db),
):
    nonce = request.cookies.get(federated.STATE_COOKIE_NAME, "")
    try:
        r = federated.verify_state(state, nonce)
    except InvalidRole as e:
        logger.warning("OAuth callback with %s", e)
        raise HTTPException(status_code=400, detail="Invalid role")
    except ProviderError as e:
        logger.warning("OAuth callback rejected: %s", e)
        return _redirect("/")

    if error or not code:
        logger.warning("Provider denied sign-in for %s: %s", r.value, error or "no code")
        return _redirect(f"{auth_url(r)}?error=provider")

    try:
        assertion = await federated.exchange_code(code)
        result = federated.find_or_create(db, r, assertion)
    except ProviderError as e:
        logger.error("Google sign-in failed for %s: %s", r.value, e, exc_info=True)
        return _redirect(f"{auth_url(r)}?error=provider")
    except StoreError as e:
        logger.error("Google sign-in store error for %s: %s", r.value, e, exc_info=True)
        return _redirect(f"{auth_url(r)}?error=server")

    target = "/profile/complete" if result.just_created else home_url(r)
    resp = _login_response(result.account, target)
    resp.delete_cookie(federated.STATE_COOKIE_NAME)
    return resp


# ------------------ Homes ------------------


@app.get("/client/home", response_class=HTMLResponse)
def client_home(
    request: Request,
    user: CurrentUser = Depends(require_role(Role.CLIENT)),
    db: Session = Depends(get_db),
):
    return _render(
        request,
        "client_home.html",
        {
            "profile": get_profile(db, Role.CLIENT, user.id),
            "projects": list_client_projects(db, user.id),
        },
    )


@app.get("/freelancer/home", response_class=HTMLResponse)
def freelancer_home(
    request: Request,
    user: CurrentUser = Depends(require_role(Role.FREELANCER)),
    db: Session = Depends(get_db),
):
    return _render(
        request,
        "freelancer_home.html",
        {
            "profile": get_profile(db, Role.FREELANCER, user.id),
            "projects": list_recent_projects(db, limit=20),
        },
    )


# ------------------ Profiles ------------------


def _profile_form(request: Request, user: CurrentUser, *, mode: str, values: dict, error: str = "", status_code: int = 200):
    return _render(
        request,
        "profile_form.html",
        {
            "mode": mode,
            "role": user.role,
            "values": values or {},
            "genders": [g for g in GENDERS if g],
            "error": error,
        },
        status_code=status_code,
    )


@app.get("/profile/complete", response_class=HTMLResponse)
def profile_complete_get(
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    if get_profile(db, user.role, user.id) is not None:
        return _redirect(home_url(user.role))
    return _profile_form(request, user, mode="complete", values={})


@app.post("/profile/complete")
async def profile_complete_post(
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    form = await request.form()
    values = {k: v for k, v in form.items() if isinstance(v, str)}
    photo = None
    try:
        fields = clean_profile_form(user.role, values)
        photo = await _store_uploaded_photo(form, user)
        if photo:
            fields["photo"] = photo
        create_profile(db, user.role, user.id, fields)
    except (ValueError, UploadError) as e:
        delete_photo(UPLOAD_DIR, photo)
        return _profile_form(request, user, mode="complete", values=values, error=str(e), status_code=400)
    except AlreadyExists:
        delete_photo(UPLOAD_DIR, photo)
        logger.info("Profile already completed for %s id=%s", user.role.value, user.id)
    except StoreError:
        delete_photo(UPLOAD_DIR, photo)
        raise
    return _redirect(home_url(user.role))


@app.get("/profile", response_class=HTMLResponse)
def profile_get(
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    profile = get_profile(db, user.role, user.id)
    if profile is None:
        return _redirect("/profile/complete")
    return _profile_form(request, user, mode="edit", values=profile)


@app.post("/profile")
async def profile_post(
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    current = get_profile(db, user.role, user.id)
    if current is None:
        return _redirect("/profile/complete")
    form = await request.form()
    values = {k: v for k, v in form.items() if isinstance(v, str)}
    photo = None
    try:
        fields = clean_profile_form(user.role, values)
        photo = await _store_uploaded_photo(form, user)
        if photo:
            fields["photo"] = photo
        update_profile(db, user.role, user.id, fields)
    except (ValueError, UploadError) as e:
        delete_photo(UPLOAD_DIR, photo)
        return _profile_form(
            request, user, mode="edit", values={**current, **values}, error=str(e), status_code=400
        )
    except NotFound:
        delete_photo(UPLOAD_DIR, photo)
        return _redirect("/profile/complete")
    except StoreError:
        delete_photo(UPLOAD_DIR, photo)
        raise
    if photo:
        delete_photo(UPLOAD_DIR, current.get("photo"))
    return _redirect(home_url(user.role))


# ------------------ Projects ------------------


@app.get("/projects/new", response_class=HTMLResponse)
def project_new_get(request: Request, user: CurrentUser = Depends(require_role(Role.CLIENT))):
    return _render(request, "project_form.html", {"values": {}, "error": ""})


@app.post("/projects/new")
async def project_new_post(
    request: Request,
    user: CurrentUser = Depends(require_role(Role.CLIENT)),
    db: Session = Depends(get_db),
):
    form = await request.form()
    values = {k: v for k, v in form.items() if isinstance(v, str)}
    try:
        create_project(db, user.id, values)
    except ValueError as e:
        return _render(request, "project_form.html", {"values": values, "error": str(e)}, status_code=400)
    return _redirect(home_url(Role.CLIENT))


# ------------------ Directory ------------------


@app.get("/freelancers", response_class=HTMLResponse)
def freelancer_directory(
    request: Request,
    q: str = "",
    skill: str = "",
    page: str = "1",
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    page_no = parse_int(page, default=1, min_value=1)
    per_page = 20
    results = search_freelancers(db, q=q, skill=skill, limit=per_page + 1, offset=(page_no - 1) * per_page)
    return _render(
        request,
        "directory.html",
        {
            "q": q,
            "skill": skill,
            "page": page_no,
            "has_next": len(results) > per_page,
            "results": results[:per_page],
        },
    )


@app.get("/freelancers/{freelancer_id}", response_class=HTMLResponse)
def freelancer_detail(
    request: Request,
    freelancer_id: int,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    card = get_freelancer(db, freelancer_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Freelancer not found")
    return _render(request, "freelancer_detail.html", {"f": card})


@app.get("/chat", response_class=HTMLResponse)
def chat(request: Request, user: CurrentUser = Depends(require_user)):
    # Messaging is not implemented; the page only says so
    return _render(request, "chat.html", {})
