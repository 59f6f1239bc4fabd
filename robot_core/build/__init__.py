"""Build metadata: entities, the remote build store, tracks and uploads."""

from .inference import BuildFlags, infer_build_information
from .models import Artifact, BuildInformation, BuildType, DeviceInfo, Package, Track, TrackUpdate
from .store import BuildStore
from .tracks import ID_OR_NAME, ResolutionState, TrackResolver, set_track
from .upload import BuildUploader, FileOutcome, StashUploader, UploadResult, Uploader, upload_files

__all__ = [
    "Artifact",
    "BuildFlags",
    "BuildInformation",
    "BuildStore",
    "BuildType",
    "BuildUploader",
    "DeviceInfo",
    "FileOutcome",
    "ID_OR_NAME",
    "Package",
    "ResolutionState",
    "StashUploader",
    "Track",
    "TrackResolver",
    "TrackUpdate",
    "UploadResult",
    "Uploader",
    "infer_build_information",
    "set_track",
    "upload_files",
]
