"""
FastAPI routes for the form builder backend.

Endpoints:
- GET    /health                    — health check
- GET    /forms                     — list stored forms
- GET    /forms/{slug}              — get a form definition
- POST   /forms/{slug}/visibility   — resolve visibility for an answer set
- POST   /forms/{slug}/validate     — validate an answer set
- POST   /submit/{slug}             — submit a response
- POST   /forms/{slug}/sessions     — start a fill-out session
- GET    /sessions/{id}             — current session state
- PATCH  /sessions/{id}/answers     — update answers in a session
- POST   /sessions/{id}/submit      — submit a session
- DELETE /sessions/{id}             — discard a session
- POST   /admin/forms/save          — create or update a form (admin)
- DELETE /admin/forms/{slug}        — delete a form (admin)
"""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from formbuilder.api.auth import is_authorized
from formbuilder.core.form_state import (
    FormSession,
    SubmissionValidationError,
    submit_answers,
    validate_answers,
)
from formbuilder.core.schema import Form, FormSubmission
from formbuilder.core.storage import FormStoreError
from formbuilder.core.visibility import resolve_visibility

logger = logging.getLogger(__name__)

router = APIRouter()

# These will be injected by the app factory
_form_store = None
_session_store = None
_admin_secret: str | None = None


def configure_routes(form_store, session_store, admin_secret: str | None = None):
    """Inject the form store, session store, and admin secret into the routes module.

    Called by the app factory during startup.
    """
    global _form_store, _session_store, _admin_secret
    _form_store = form_store
    _session_store = session_store
    _admin_secret = admin_secret


# --- Request Models ---


class AnswersRequest(BaseModel):
    """Request body carrying an answer set."""

    answers: dict[str, Any] = {}


class SubmitRequest(BaseModel):
    """Request body for a submission: answers plus uploaded file names."""

    answers: dict[str, Any] = {}
    files: dict[str, list[str]] = {}


# --- Helpers ---


def _require_stores():
    if _form_store is None or _session_store is None:
        raise HTTPException(status_code=500, detail="Server not properly configured")


def _load_form(slug: str) -> Form:
    _require_stores()
    form = _form_store.get_form(slug)
    if form is None:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def _require_admin(request: Request) -> None:
    if not is_authorized(request, _admin_secret):
        raise HTTPException(status_code=401, detail="Unauthorized")


def _get_form_session(session_id: str) -> FormSession:
    _require_stores()
    session = _session_store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session.form_session


def _session_state(session_id: str, form_session: FormSession) -> dict:
    return {
        "sessionId": session_id,
        "formSlug": form_session.form.slug,
        "answers": form_session.get_all_answers(),
        "visibility": form_session.visibility,
        "progress": form_session.progress(),
    }


def _submit(build_submission: Callable[[], FormSubmission]) -> dict:
    """Validate and accept a response, mapping failures to a 400."""
    try:
        submission = build_submission()
    except SubmissionValidationError as e:
        raise HTTPException(
            status_code=400,
            detail={
                "error": e.message,
                "questionId": e.question_id,
                "errors": e.result.errors,
            },
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        "Accepted submission %s for form '%s' (%d answers, %d file fields)",
        submission.submission_id,
        submission.form_slug,
        len(submission.answers),
        len(submission.files),
    )
    return {
        "success": True,
        "message": "Form submitted successfully",
        "submissionId": submission.submission_id,
        "submission": submission.model_dump(mode="json", by_alias=True),
    }


# --- Public endpoints ---


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    session_count = _session_store.count() if _session_store else 0
    return {
        "status": "healthy",
        "active_sessions": session_count,
    }


@router.get("/forms")
async def list_forms():
    """List stored forms with their basic metadata."""
    _require_stores()
    return {
        "forms": [
            {
                "id": form.id,
                "slug": form.slug,
                "title": form.title,
                "description": form.description,
            }
            for form in _form_store.list_forms()
        ]
    }


@router.get("/forms/{slug}")
async def get_form(slug: str):
    """Get a form definition by slug."""
    return _load_form(slug).to_json_dict()


@router.post("/forms/{slug}/visibility")
async def resolve_form_visibility(slug: str, payload: AnswersRequest):
    """Resolve section and question visibility for the given answers."""
    form = _load_form(slug)
    visibility = resolve_visibility(form, payload.answers)
    visible_ids = [q.id for q in form.iter_questions() if visibility.get(q.id, False)]
    return {
        "visibility": visibility,
        "visibleQuestionIds": visible_ids,
    }


@router.post("/forms/{slug}/validate")
async def validate_form_answers(slug: str, payload: AnswersRequest):
    """Validate answers against the questions visible for those answers."""
    form = _load_form(slug)
    return validate_answers(form, payload.answers).model_dump(by_alias=True)


@router.post("/submit/{slug}")
async def submit_form(slug: str, payload: SubmitRequest):
    """Submit a response.

    Visibility is resolved on the server from the submitted answers as
    given: values for hidden questions are dropped and only visible
    questions are validated.
    """
    form = _load_form(slug)
    return _submit(lambda: submit_answers(form, payload.answers, payload.files))


# --- Session endpoints ---


@router.post("/forms/{slug}/sessions")
async def create_session(slug: str, payload: AnswersRequest | None = None):
    """Start a fill-out session for a form."""
    form = _load_form(slug)
    expired = _session_store.cleanup_expired()
    if expired:
        logger.info("Removed %d expired session(s)", expired)
    answers = payload.answers if payload else None
    session_id, session = _session_store.create_session(form, answers)
    return _session_state(session_id, session.form_session)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    """Return the current answers, visibility and progress of a session."""
    return _session_state(session_id, _get_form_session(session_id))


@router.patch("/sessions/{session_id}/answers")
async def update_answers(session_id: str, payload: AnswersRequest):
    """Apply answer changes; questions that become hidden are reset."""
    form_session = _get_form_session(session_id)
    try:
        form_session.set_answers(payload.answers)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_state(session_id, form_session)


@router.post("/sessions/{session_id}/submit")
async def submit_session(session_id: str):
    """Submit a session's visible answers and close it."""
    form_session = _get_form_session(session_id)
    response = _submit(form_session.build_submission)
    _session_store.delete_session(session_id)
    return response


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Discard a session."""
    _require_stores()
    deleted = _session_store.delete_session(session_id)
    return {
        "success": deleted,
        "message": "Session deleted" if deleted else "Session not found",
    }


# --- Admin endpoints ---


@router.post("/admin/forms/save")
async def save_form(request: Request, form: Form):
    """Create or update a form definition."""
    _require_admin(request)
    _require_stores()
    try:
        saved = _form_store.save_form(form)
    except FormStoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "message": "Form saved successfully",
        "slug": saved.slug,
    }


@router.delete("/admin/forms/{slug}")
async def delete_form(request: Request, slug: str):
    """Delete a form definition."""
    _require_admin(request)
    _require_stores()
    if not _form_store.delete_form(slug):
        raise HTTPException(status_code=404, detail="Form not found")
    return {"success": True, "message": "Form deleted"}
