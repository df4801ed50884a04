from __future__ import annotations

import logging
import os

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlmodel import Session, SQLModel

from .database import Event, Invitation, InvitationStatus, Submission, SubmissionKind, get_session
from .errors import DomainError
from .events import EventCreate, EventDirectory
from .invitations import InvitationCreate, InvitationManager, invite_link
from .notifications import send_invitation
from .photos import MAX_PHOTO_BYTES, PhotoUploader
from .storage import BlobStore, get_blob_store
from .submissions import SubmissionPayload, SubmissionStore, rank
from .votes import VoteTally

router = APIRouter()

logger = logging.getLogger(__name__)
PUBLIC_ORIGIN = os.getenv("PUBLIC_ORIGIN")

KIND_PATHS = {
    "tracks": SubmissionKind.TRACK,
    "costumes": SubmissionKind.COSTUME,
    "photos": SubmissionKind.PHOTO,
}


class SubmissionCreate(SQLModel):
    author_id: str = ""
    url: str = ""
    title: str | None = None


class ResponseCreate(SQLModel):
    decision: str


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"code": exc.code.value, "detail": exc.message}, status_code=exc.status_code)


def _origin(request: Request) -> str:
    return PUBLIC_ORIGIN or str(request.base_url)


def _invitation_payload(invitation: Invitation, origin: str) -> dict[str, object]:
    return {
        "id": invitation.id,
        "event_id": invitation.event_id,
        "invite_code": invitation.invite_code,
        "guest_name": invitation.guest_name,
        "guest_email": invitation.guest_email,
        "status": invitation.status,
        "created_at": invitation.created_at,
        "responded_at": invitation.responded_at,
        "link": invite_link(origin, invitation.invite_code),
    }


def _respond_payload(event: Event, invitation: Invitation) -> dict[str, object]:
    return {
        "event": {
            "id": event.id,
            "title": event.title,
            "description": event.description,
            "event_date": event.event_date,
            "location": event.location,
        },
        "invitation": {
            "guest_name": invitation.guest_name,
            "status": invitation.status,
            "responded_at": invitation.responded_at,
        },
        "responded": invitation.status is not InvitationStatus.PENDING,
    }


def _submission_payload(submission: Submission) -> dict[str, object]:
    return {
        "id": submission.id,
        "event_id": submission.event_id,
        "kind": submission.kind,
        "author_id": submission.author_id,
        "url": submission.url,
        "title": submission.title,
        "vote_count": submission.vote_count,
        "created_at": submission.created_at,
    }


def _kind_for(kind_path: str) -> SubmissionKind:
    kind = KIND_PATHS.get(kind_path)
    if kind is None:
        raise HTTPException(status_code=404, detail="Not found")
    return kind


@router.post("/events", status_code=201, name="create_event")
async def create_event(fields: EventCreate, session: Session = Depends(get_session)):
    return EventDirectory(session).create_event(fields)


@router.get("/events", name="list_events")
async def list_events(owner_id: str, session: Session = Depends(get_session)):
    return EventDirectory(session).list_events(owner_id)


@router.get("/events/{event_id}", name="get_event")
async def get_event(event_id: int, session: Session = Depends(get_session)):
    return EventDirectory(session).get_event(event_id)


@router.delete("/events/{event_id}", status_code=204, name="delete_event")
async def delete_event(event_id: int, session: Session = Depends(get_session)):
    EventDirectory(session).delete_event(event_id)


@router.post("/events/{event_id}/invitations", status_code=201, name="create_invitation")
async def create_invitation(
    event_id: int,
    guest: InvitationCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    manager = InvitationManager(session)
    invitation = manager.create_invitation(event_id, guest)
    origin = _origin(request)
    event = manager.events.get_event(event_id)
    background_tasks.add_task(send_invitation, event, invitation, invite_link(origin, invitation.invite_code))
    return _invitation_payload(invitation, origin)


@router.get("/events/{event_id}/invitations", name="list_invitations")
async def list_invitations(event_id: int, request: Request, session: Session = Depends(get_session)):
    origin = _origin(request)
    invitations = InvitationManager(session).list_for_event(event_id)
    return [_invitation_payload(invitation, origin) for invitation in invitations]


@router.get("/respond/{invite_code}", name="resolve_invitation")
async def resolve_invitation(invite_code: str, session: Session = Depends(get_session)):
    event, invitation = InvitationManager(session).resolve(invite_code)
    return _respond_payload(event, invitation)


@router.post("/respond/{invite_code}", name="respond_invitation")
async def respond_invitation(
    invite_code: str,
    response: ResponseCreate,
    session: Session = Depends(get_session),
):
    manager = InvitationManager(session)
    _, applied = manager.respond(invite_code, response.decision)
    event, invitation = manager.resolve(invite_code)
    return {**_respond_payload(event, invitation), "applied": applied}


@router.post("/events/{event_id}/photos", status_code=201, name="upload_photo")
async def upload_photo(
    event_id: int,
    session: Session = Depends(get_session),
    blob_store: BlobStore = Depends(get_blob_store),
    image: UploadFile = File(...),
    caption: str = Form(default=""),
    author_id: str = Form(default=""),
):
    # One byte past the limit is enough for the size check to reject it.
    data = await image.read(MAX_PHOTO_BYTES + 1)
    submission = PhotoUploader(session, blob_store).upload(
        event_id,
        author_id,
        caption,
        filename=image.filename,
        content_type=image.content_type,
        data=data,
    )
    return _submission_payload(submission)


@router.post("/events/{event_id}/{kind_path}", status_code=201, name="create_submission")
async def create_submission(
    event_id: int,
    kind_path: str,
    body: SubmissionCreate,
    session: Session = Depends(get_session),
):
    store = SubmissionStore(session, _kind_for(kind_path))
    submission = store.submit(event_id, body.author_id, SubmissionPayload(url=body.url, title=body.title))
    return _submission_payload(submission)


@router.get("/events/{event_id}/{kind_path}", name="list_submissions")
async def list_submissions(event_id: int, kind_path: str, session: Session = Depends(get_session)):
    kind = _kind_for(kind_path)
    event = EventDirectory(session).get_event(event_id)
    submissions = SubmissionStore(session, kind).list_by_event(event.id)
    return {
        "event": {"id": event.id, "title": event.title},
        "submissions": [_submission_payload(item) for item in rank(submissions)],
    }


@router.post("/submissions/{submission_id}/vote", name="vote")
async def vote(submission_id: int, session: Session = Depends(get_session)):
    count = VoteTally(session).increment(submission_id)
    return {"id": submission_id, "vote_count": count}
