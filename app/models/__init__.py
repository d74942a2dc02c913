from .user import User
from .folder import Folder
from .folder_path import FolderPath
from .file import File
from .archived_file import ArchivedFile

__all__ = [
    "User",
    "Folder",
    "FolderPath",
    "File",
    "ArchivedFile"
]
