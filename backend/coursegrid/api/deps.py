from fastapi import Request

from coursegrid.services.workspace import Workspace


def get_workspace(request: Request) -> Workspace:
    return request.app.state.workspace
