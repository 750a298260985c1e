from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class WorkspaceInfoDTO(BaseModel):
    name: str = ""


class ProjectDTO(BaseModel):
    name: str
    path: str = "."
    include: List[str] = ["**/*.py"]
    exclude: List[str] = []
    dependencies: List[str] = []


class WorkspaceDescriptorDTO(BaseModel):
    workspace: WorkspaceInfoDTO = WorkspaceInfoDTO()
    projects: List[ProjectDTO] = Field(default=[], alias="project")
