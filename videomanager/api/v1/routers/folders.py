# videomanager/api/v1/routers/folders.py
from __future__ import annotations

"""
🗂️ Video Manager · Folders
==========================

Routes (4)
----------
- GET    /folders                 → List folders (reserved first, then nested)
- POST   /folders                 → Create a folder (`.keep` placeholder)
- PUT    /folders/rename          → Rename a folder (moves every object below it)
- DELETE /folders/{path}          → Delete a folder that holds no videos

Security & Operations
---------------------
- Bearer token required on every route
- `no-store` on every response (clients keep their own display cache and
  drop it after any mutation)
- The boto3 client is synchronous; service calls run in a worker thread
"""

import asyncio

from fastapi import APIRouter, Body, Depends, Response, status

from videomanager.core.security import get_current_user
from videomanager.dependencies.storage import get_folder_index
from videomanager.schemas.videos import (
    CreateFolderRequest,
    FolderCreated,
    FolderDeleted,
    FolderList,
    FolderRenamed,
    RenameFolderRequest,
)
from videomanager.security_headers import set_sensitive_cache
from videomanager.services.folder_index import FolderIndex
from videomanager.services.key_codec import normalize_folder

router = APIRouter(prefix="/folders", tags=["Folders"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=FolderList, summary="List folders")
async def list_folders(response: Response, index: FolderIndex = Depends(get_folder_index)) -> FolderList:
    set_sensitive_cache(response)
    folders = await asyncio.to_thread(index.list_folders)
    return FolderList(folders=folders)


@router.post("", response_model=FolderCreated, status_code=status.HTTP_201_CREATED, summary="Create a folder")
async def create_folder(
    response: Response,
    payload: CreateFolderRequest = Body(...),
    index: FolderIndex = Depends(get_folder_index),
) -> FolderCreated:
    set_sensitive_cache(response)
    folder = await asyncio.to_thread(index.create_folder, payload.folder_name)
    return FolderCreated(folder=folder)


@router.put("/rename", response_model=FolderRenamed, summary="Rename a folder")
async def rename_folder(
    response: Response,
    payload: RenameFolderRequest = Body(...),
    index: FolderIndex = Depends(get_folder_index),
) -> FolderRenamed:
    """
    Copy-then-delete every object under the old prefix, sequentially.

    A failure partway returns `PartialApplication` (500) naming how many
    objects moved and which key/step failed.
    """
    set_sensitive_cache(response)
    moved = await asyncio.to_thread(index.rename_folder, payload.old_name, payload.new_name)
    return FolderRenamed(folder=normalize_folder(payload.new_name), moved=moved)


@router.delete("/{path:path}", response_model=FolderDeleted, summary="Delete an empty folder")
async def delete_folder(
    path: str,
    response: Response,
    index: FolderIndex = Depends(get_folder_index),
) -> FolderDeleted:
    """Refused with `FolderNotEmpty` while any video exists anywhere below the folder."""
    set_sensitive_cache(response)
    deleted = await asyncio.to_thread(index.delete_folder, path)
    return FolderDeleted(folder=normalize_folder(path), deleted=deleted)


__all__ = ["router"]
