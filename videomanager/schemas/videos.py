# videomanager/schemas/videos.py

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from videomanager.services.video_registry import VideoAsset


# ──────────────── Folders ────────────────
class FolderList(BaseModel):
    folders: List[str]


class CreateFolderRequest(BaseModel):
    folder_name: str = Field("", alias="folderName")

    model_config = ConfigDict(populate_by_name=True)


class RenameFolderRequest(BaseModel):
    old_name: str = Field("", alias="oldName")
    new_name: str = Field("", alias="newName")

    model_config = ConfigDict(populate_by_name=True)


class FolderCreated(BaseModel):
    success: bool = True
    folder: str


class FolderRenamed(BaseModel):
    success: bool = True
    folder: str
    moved: int


class FolderDeleted(BaseModel):
    success: bool = True
    folder: str
    deleted: int


# ──────────────── Videos ────────────────
class VideoOut(BaseModel):
    key: str
    name: str
    size: int
    last_modified: Optional[datetime] = None
    folder: str
    url: str

    @classmethod
    def from_asset(cls, asset: VideoAsset) -> "VideoOut":
        return cls(
            key=asset.key,
            name=asset.name,
            size=asset.size,
            last_modified=asset.last_modified,
            folder=asset.folder,
            url=asset.url,
        )


class VideoList(BaseModel):
    folder: str
    videos: List[VideoOut]


class UploadResult(BaseModel):
    success: bool = True
    key: str
    url: str


class PresignRequest(BaseModel):
    folder: Optional[str] = None
    file_name: str = Field("", alias="fileName")
    content_type: str = Field("video/mp4", alias="contentType")

    model_config = ConfigDict(populate_by_name=True)


class PresignResult(BaseModel):
    upload_url: str
    key: str
    url: str
    expires_in: int


class RenameVideoRequest(BaseModel):
    new_name: Optional[str] = Field(None, alias="newName")

    model_config = ConfigDict(populate_by_name=True)


class MoveVideoRequest(BaseModel):
    target_folder: Optional[str] = Field(None, alias="targetFolder")

    model_config = ConfigDict(populate_by_name=True)


class DeleteVideoResult(BaseModel):
    success: bool = True
    outcome: Literal["recycled", "purged"]
    moved_to_recycle_bin: bool = False
    permanent: bool = False
    recycle_key: Optional[str] = None


class RenameVideoResult(BaseModel):
    success: bool = True
    new_key: str
    url: str


class RestoreVideoResult(BaseModel):
    success: bool = True
    restored_key: str
    url: str
