"""
ProjectService orchestrates the Project/Todo aggregate for the HTTP layer.

Owner-scoped operations take the caller identity resolved by the identity
gate. Operations addressed by project or todo id do not check that the caller
owns the target.
"""
import logging
from contextlib import contextmanager

from todo_service.exceptions import (
    ExternalServiceError,
    InternalError,
    PersistenceError,
)
from .export import ExportConfig, ExportPipeline
from .repositories import ProjectRepository, TodoRepository

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(action):
    """Re-raise storage failures as InternalError("Error <action>"); NotFound passes through."""
    try:
        yield
    except PersistenceError as e:
        logger.error("Error %s: %s", action, e.message)
        raise InternalError(f"Error {action}", cause=e) from e


class ProjectService:

    def __init__(self, projects=None, todos=None, exporter=None):
        self.projects = projects or ProjectRepository()
        self.todos = todos or TodoRepository(self.projects)
        self._exporter = exporter

    @property
    def exporter(self):
        if self._exporter is None:
            self._exporter = ExportPipeline(ExportConfig.from_settings())
        return self._exporter

    # --- Projects ---

    def create_project(self, identity, title):
        with storage_errors('creating project'):
            project = self.projects.create(title, identity)
        logger.info("Project %s created for %s", project.pk, identity)
        return project

    def update_project(self, project_id, title):
        with storage_errors('updating project'):
            return self.projects.update(project_id, title)

    def delete_project(self, identity, project_id):
        """Soft-delete a project and return the caller's remaining active projects."""
        with storage_errors('deleting project'):
            projects = self.projects.soft_delete(project_id, identity)
        logger.info("Project %s soft-deleted by %s", project_id, identity)
        return projects

    def list_projects(self, identity):
        with storage_errors('retrieving projects'):
            return self.projects.list_active(identity)

    def list_deleted_projects(self, identity):
        with storage_errors('retrieving deleted projects'):
            return self.projects.list_deleted(identity)

    def get_project_by_id(self, project_id):
        """
        Return the project with ``active_todos`` populated, newest first.

        Soft-deleted projects are returned as well; only an unknown id raises
        NotFound.
        """
        with storage_errors('retrieving project'):
            return self.projects.find_by_id(project_id, with_todos=True)

    # --- Todos ---

    def add_todo_to_project(self, project_id, name, description=''):
        with storage_errors('adding todo to project'):
            todo = self.todos.create(project_id, name, description)
        logger.info("Todo %s added to project %s", todo.pk, project_id)
        return todo

    def update_todo_status(self, todo_id, status):
        with storage_errors('updating todo status'):
            return self.todos.update_status(todo_id, status)

    def update_todo(self, todo_id, name=None, description=None):
        with storage_errors('updating todo'):
            return self.todos.update(todo_id, name=name, description=description)

    def delete_todo(self, todo_id):
        with storage_errors('deleting todo'):
            self.todos.soft_delete(todo_id)

    def list_deleted_todos(self, project_id):
        with storage_errors('retrieving deleted todos'):
            return self.todos.list_deleted(project_id)

    # --- Export ---

    def export_project_summary(self, project_id):
        """
        Publish the project's markdown digest as a secret gist and return its URL.

        NotFound for an unknown project propagates; every other failure up to
        the local markdown write is reported as ExternalServiceError. The PDF
        copy is rendered in the background and cannot fail this call.
        """
        try:
            project = self.get_project_by_id(project_id)
        except InternalError as e:
            raise ExternalServiceError('Error exporting project summary to Gist', cause=e) from e
        return self.exporter.export(project, project.active_todos)
