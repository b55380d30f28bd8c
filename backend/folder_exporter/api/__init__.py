"""API routes."""
from fastapi import APIRouter
from folder_exporter.api import exports, folders

api_router = APIRouter()

# Exports
api_router.include_router(exports.router, tags=["exports"])

# Folders
api_router.include_router(folders.router, tags=["folders"])
