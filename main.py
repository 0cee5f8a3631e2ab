import base64
import logging
import os
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.middleware.sessions import SessionMiddleware

from auth import AuthError, Caller, RoleResolver, require_discord_role
from database import CitationStore
from discord_bot import DiscordClient, ReportNotifier
from form_session import FormSession, OfficerProfileCache
from log import configure_logging
from penal_codes import ARREST, CITATION, catalog_for
from records import ArrestRecord, CitationRecord
from settings import Settings
from submissions import SubmissionService

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)

router = APIRouter()

RECORD_TYPES = {CITATION: CitationRecord, ARREST: ArrestRecord}


# ----- Error Handling -----

def _error_field(loc) -> str:
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


def format_validation_errors(errors) -> list:
    return [{"field": _error_field(error["loc"]), "message": error["msg"]} for error in errors]


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = format_validation_errors(exc.errors())
    logger.info("Validation failed for %s: %s", request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


async def auth_error_handler(request: Request, exc: AuthError):
    if request.url.path.startswith("/api/"):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
    return templates.TemplateResponse(
        request, "auth_error.html", {"error": exc.to_dict()}, status_code=exc.status_code
    )


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error handling %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


# ----- API -----

def get_submissions(request: Request) -> SubmissionService:
    return request.app.state.submissions


@router.post("/api/citations")
async def create_citation(
    record: CitationRecord,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(require_discord_role),
    submissions: SubmissionService = Depends(get_submissions),
):
    logger.info("Citation submitted by %s (%s)", caller.username, caller.id)
    citation = await submissions.submit_citation(record, background_tasks)
    return {"success": True, "citation": jsonable_encoder(citation), "message": "Citation submitted successfully"}


@router.get("/api/citations")
async def list_citations(submissions: SubmissionService = Depends(get_submissions)):
    return await submissions.store.list_citations()


@router.get("/api/citations/{citation_id}")
async def get_citation(citation_id: str, submissions: SubmissionService = Depends(get_submissions)):
    try:
        parsed_id = int(citation_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid citation ID")

    citation = await submissions.store.get_citation(parsed_id)
    if not citation:
        raise HTTPException(status_code=404, detail="Citation not found")
    return citation


@router.post("/api/arrests")
async def create_arrest(
    record: ArrestRecord,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(require_discord_role),
    submissions: SubmissionService = Depends(get_submissions),
):
    logger.info("Arrest report submitted by %s (%s)", caller.username, caller.id)
    arrest = await submissions.submit_arrest(record, background_tasks)
    return {
        "success": True,
        "id": arrest["id"],
        "arrest": arrest,
        "message": "Arrest report submitted successfully",
    }


@router.get("/api/arrests")
async def list_arrests():
    # arrest reports are forwarded to Discord only
    return []


@router.get("/api/penal-codes/{kind}")
async def penal_codes(kind: str):
    try:
        catalog = catalog_for(kind)
    except ValueError:
        raise HTTPException(status_code=404, detail="Unknown report kind")
    return [entry.to_dict() for entry in catalog]


@router.get("/health")
async def health_check():
    return {"status": "ok"}


# ----- Form Pages -----

def _session_key(kind: str) -> str:
    return f"form:{kind}"


def load_form(request: Request, kind: str) -> FormSession:
    data = request.session.get(_session_key(kind))
    if data:
        return FormSession.from_dict(data)
    form = FormSession(kind)
    roster = OfficerProfileCache(request.session).load(include_signatures=kind == ARREST)
    if roster is not None:
        form.roster = roster
    return form


def save_form(request: Request, form: FormSession, cache_officers: bool = True):
    request.session[_session_key(form.kind)] = form.to_dict()
    if cache_officers:
        OfficerProfileCache(request.session).save(form.roster, include_signatures=form.kind == ARREST)


def apply_form_fields(form: FormSession, data) -> None:
    code_changed = False
    for row in list(form.ledger.rows):
        code = data.get(f"offense-{row.row_id}-code")
        if code and code != row.code:
            code_changed = form.ledger.select_code(row.row_id, code) or code_changed

    for officer in form.roster:
        updates = {}
        for name in ("badge", "display_name", "rank", "discord_user_id", "signature"):
            value = data.get(f"officer-{officer.officer_id}-{name}")
            if value is not None:
                updates[name] = value
        form.roster.update(officer.officer_id, **updates)

    for name, current in form.fields.items():
        if isinstance(current, bool):
            form.set_field(name, data.get(name) is not None)
        elif name in data:
            form.set_field(name, data.get(name))

    remaining = data.get("remainingSeconds")
    if remaining is not None and not code_changed:
        form.ledger.set_remaining(remaining)


async def read_mugshot(data) -> Optional[str]:
    upload = data.get("mugshot")
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None
    content = await upload.read()
    if not content:
        return None
    content_type = upload.content_type or "application/octet-stream"
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


def render_form(request: Request, form: FormSession, errors: Optional[dict] = None, status_code: int = 200):
    totals = form.ledger.totals()
    return templates.TemplateResponse(
        request,
        f"{form.kind}_form.html",
        {
            "form": form,
            "catalog": list(form.ledger.catalog),
            "totals": totals,
            "warrant": form.ledger.warrant(form.time_served),
            "errors": errors or {},
            "flash": request.session.pop("flash", None),
        },
        status_code=status_code,
    )


async def submit_form(request: Request, form: FormSession, mugshot: Optional[str], background_tasks: BackgroundTasks):
    save_form(request, form)
    await require_discord_role(request)

    errors = form.validate()
    if errors:
        return render_form(request, form, errors, status.HTTP_400_BAD_REQUEST)

    try:
        record = RECORD_TYPES[form.kind].model_validate(form.to_payload(mugshot_base64=mugshot))
    except ValidationError as e:
        errors = {}
        for item in format_validation_errors(e.errors()):
            errors.setdefault(item["field"].split(".")[0], item["message"])
        return render_form(request, form, errors, status.HTTP_400_BAD_REQUEST)

    submissions: SubmissionService = request.app.state.submissions
    if form.kind == CITATION:
        await submissions.submit_citation(record, background_tasks)
        request.session["flash"] = "Citation submitted successfully."
    else:
        await submissions.submit_arrest(record, background_tasks)
        request.session["flash"] = "Arrest report submitted successfully."

    form.clear(keep_officers=True)
    save_form(request, form)
    return RedirectResponse(url=f"/{form.kind}", status_code=status.HTTP_303_SEE_OTHER)


async def handle_form_post(request: Request, kind: str, background_tasks: BackgroundTasks):
    data = await request.form()
    form = load_form(request, kind)
    apply_form_fields(form, data)
    mugshot = await read_mugshot(data) if kind == ARREST else None
    if mugshot:
        # an uploaded mugshot replaces the written description
        form.set_field("description", "")

    action, _, target = (data.get("action") or "").partition(":")
    if action == "submit":
        return await submit_form(request, form, mugshot, background_tasks)

    if action == "add_offense":
        form.ledger.add_row()
    elif action == "remove_offense":
        if not form.ledger.remove_row(target):
            request.session["flash"] = "At least one offense is required."
    elif action == "add_officer":
        if form.roster.add() is None:
            request.session["flash"] = "Reports are limited to 3 officers (1 primary and 2 assisting)."
    elif action == "remove_officer":
        form.roster.remove(target)
    elif action == "clear":
        form.clear(keep_officers=False)
        OfficerProfileCache(request.session).clear()

    save_form(request, form, cache_officers=action != "clear")
    return RedirectResponse(url=f"/{kind}", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/")
async def home(request: Request):
    return templates.TemplateResponse(request, "index.html", {})


@router.get("/citation")
async def citation_form(request: Request):
    return render_form(request, load_form(request, CITATION))


@router.post("/citation")
async def citation_form_post(request: Request, background_tasks: BackgroundTasks):
    return await handle_form_post(request, CITATION, background_tasks)


@router.get("/arrest")
async def arrest_form(request: Request):
    return render_form(request, load_form(request, ARREST))


@router.post("/arrest")
async def arrest_form_post(request: Request, background_tasks: BackgroundTasks):
    return await handle_form_post(request, ARREST, background_tasks)


# ----- Application -----

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CitationStore] = None,
    notifier: Optional[ReportNotifier] = None,
    role_resolver: Optional[RoleResolver] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    discord_client = None
    if settings.discord_bot_token and (notifier is None or role_resolver is None):
        discord_client = DiscordClient(settings.discord_bot_token, settings.discord_api_base)
    if notifier is None and settings.notifications_enabled:
        notifier = ReportNotifier(discord_client, settings.discord_channel_id)
    if role_resolver is None and settings.role_checks_enabled:
        role_resolver = RoleResolver(discord_client, settings.discord_guild_id)

    if notifier is None:
        logger.warning("Discord notifications not configured - missing DISCORD_BOT_TOKEN or DISCORD_CHANNEL_ID")
    if role_resolver is None:
        logger.warning("Discord auth not configured - missing DISCORD_GUILD_ID or DISCORD_BOT_TOKEN")
    else:
        logger.info("Discord auth initialized with required roles: %s", settings.required_roles)

    store = store or CitationStore(settings.database_url)

    app = FastAPI()
    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret_key)

    app.state.settings = settings
    app.state.role_resolver = role_resolver
    app.state.submissions = SubmissionService(store, notifier)

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    app.include_router(router)

    @app.on_event("startup")
    async def startup():
        await store.connect()
        if discord_client is not None:
            await discord_client.start()

    @app.on_event("shutdown")
    async def shutdown():
        await store.disconnect()
        if discord_client is not None:
            await discord_client.close()

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
