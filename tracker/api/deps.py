# tracker/api/deps.py

from fastapi import Request

from tracker.core.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_sweeper(request: Request):
    return request.app.state.sweeper
