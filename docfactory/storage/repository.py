"""Storage repository for project documents."""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from docfactory.core.config import Settings
from docfactory.models.schemas import GenerationResult, Script


class ProjectRepository:
    """
    Write-once JSON store keyed by project id.

    Layout under settings.storage_path:
        scripts/<project_id>.json   accepted script with measured duration
        projects/<project_id>.json  generation manifest
    """

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the repository.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.storage_path = Path(settings.storage_path)
        self.scripts_dir = self.storage_path / "scripts"
        self.projects_dir = self.storage_path / "projects"
        self.scripts_dir.mkdir(parents=True, exist_ok=True)
        self.projects_dir.mkdir(parents=True, exist_ok=True)

    def _write_once(self, file_path: Path, document: BaseModel) -> Path:
        # Mode "x" fails if another job already wrote this project id
        with open(file_path, "x", encoding="utf-8") as f:
            json.dump(document.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
        return file_path

    def save_script(self, project_id: str, script: Script) -> Path:
        """
        Save the accepted script of a project.

        Args:
            project_id: Project identifier
            script: Script carrying its measured duration

        Returns:
            Path of the written document

        Raises:
            FileExistsError: If a script was already stored for this project
        """
        file_path = self._write_once(self.scripts_dir / f"{project_id}.json", script)
        self.logger.info(f"Script saved to: {file_path}")
        return file_path

    def save_manifest(self, result: GenerationResult) -> Path:
        """
        Save a generation manifest.

        Raises:
            FileExistsError: If a manifest was already stored for this project
        """
        file_path = self._write_once(self.projects_dir / f"{result.project_id}.json", result)
        self.logger.info(f"Manifest saved to: {file_path}")
        return file_path

    def load_script(self, project_id: str) -> Optional[Script]:
        file_path = self.scripts_dir / f"{project_id}.json"
        if not file_path.exists():
            self.logger.warning(f"Script not found: {project_id}")
            return None
        with open(file_path, "r", encoding="utf-8") as f:
            return Script.model_validate(json.load(f))

    def load_manifest(self, project_id: str) -> Optional[GenerationResult]:
        """
        Load a project manifest.

        Args:
            project_id: Project identifier

        Returns:
            Manifest if found, None otherwise
        """
        file_path = self.projects_dir / f"{project_id}.json"
        if not file_path.exists():
            self.logger.warning(f"Project not found: {project_id}")
            return None

        with open(file_path, "r", encoding="utf-8") as f:
            return GenerationResult.model_validate(json.load(f))

    def list_projects(self) -> list[str]:
        """
        List all project IDs with a manifest.

        Returns:
            Sorted project IDs
        """
        project_ids = sorted(f.stem for f in self.projects_dir.glob("*.json"))
        self.logger.info(f"Found {len(project_ids)} projects")
        return project_ids
