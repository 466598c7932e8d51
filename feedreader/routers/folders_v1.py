from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..auth.gate import Identity, get_current_identity
from ..db import get_session
from ..schemas import FolderCreate, FolderOut
from ..services.subscriptions import SubscriptionStore


router = APIRouter(prefix="/v1/folders", tags=["v1", "folders"])


@router.get("", response_model=List[FolderOut], summary="List folders")
def list_folders_v1(
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    folders = SubscriptionStore(session).list_folders(identity.user_id)
    return [FolderOut.model_validate(folder) for folder in folders]


@router.post(
    "",
    response_model=FolderOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create folder",
)
def create_folder_v1(
    body: FolderCreate,
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    folder = SubscriptionStore(session).create_folder(identity.user_id, body.name)
    return FolderOut.model_validate(folder)


@router.delete(
    "/{folder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete folder",
)
def delete_folder_v1(
    folder_id: str,
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    SubscriptionStore(session).delete_folder(folder_id, identity.user_id)
    return None
