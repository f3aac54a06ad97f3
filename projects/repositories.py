"""
Repositories for the Project/Todo aggregate.

The Django ORM is the storage adapter: ``DatabaseError`` from it is turned into
``PersistenceError`` here, and a missing row into ``NotFound``. Soft-deleted
rows stay in storage and are filtered with an explicit ``is_deleted`` predicate.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.db.models import Prefetch
from django.utils import timezone

from todo_service.exceptions import InternalError, NotFound, PersistenceError
from .models import Project, Todo

logger = logging.getLogger(__name__)


def active_todos_prefetch():
    """Populate ``project.active_todos`` with non-deleted todos, newest first."""
    return Prefetch(
        'todos',
        queryset=Todo.objects.filter(is_deleted=False).order_by('-created_at'),
        to_attr='active_todos',
    )


class ProjectRepository:

    def create(self, title, owner):
        try:
            project = Project.objects.create(title=title, owner=owner)
        except DatabaseError as e:
            raise PersistenceError(f"Project creation failed: {e}", cause=e) from e
        project.active_todos = []
        return project

    def find_by_id(self, project_id, with_todos=False):
        """
        Fetch a project by id, soft-deleted ones included.

        Raises:
            NotFound: no row with that id (or the id is not a valid UUID).
            PersistenceError: the storage layer failed.
        """
        queryset = Project.objects.all()
        if with_todos:
            queryset = queryset.prefetch_related(active_todos_prefetch())
        try:
            return queryset.get(pk=project_id)
        except (Project.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound('Project not found')
        except DatabaseError as e:
            raise PersistenceError(f"Project lookup failed: {e}", cause=e) from e

    def update(self, project_id, title):
        project = self.find_by_id(project_id)
        project.title = title
        try:
            project.save(update_fields=['title'])
        except DatabaseError as e:
            raise PersistenceError(f"Project update failed: {e}", cause=e) from e
        return project

    def append_todo(self, project, todo):
        try:
            project.todos.add(todo)
        except DatabaseError as e:
            raise PersistenceError(f"Appending todo {todo.pk} to project {project.pk} failed: {e}", cause=e) from e

    def _list(self, owner, deleted):
        try:
            return list(
                Project.objects.filter(owner=owner, is_deleted=deleted)
                .order_by('-created_at')
                .prefetch_related(active_todos_prefetch())
            )
        except DatabaseError as e:
            raise PersistenceError(f"Project listing failed: {e}", cause=e) from e

    def list_active(self, owner):
        return self._list(owner, deleted=False)

    def list_deleted(self, owner):
        return self._list(owner, deleted=True)

    def soft_delete(self, project_id, owner):
        """
        Flag a project as deleted and return the owner's remaining active projects.

        Deleting an already-deleted or unknown id is not an error; only the
        first call records ``deleted_at``.
        """
        try:
            flipped = Project.objects.filter(pk=project_id, is_deleted=False).update(
                is_deleted=True, deleted_at=timezone.now()
            )
        except (DjangoValidationError, ValueError):
            flipped = 0
        except DatabaseError as e:
            raise PersistenceError(f"Project delete failed: {e}", cause=e) from e
        if not flipped:
            logger.info("Soft delete of project %s changed nothing", project_id)
        return self.list_active(owner)


class TodoRepository:

    def __init__(self, projects=None):
        self.projects = projects or ProjectRepository()

    def find_by_id(self, todo_id):
        try:
            return Todo.objects.get(pk=todo_id)
        except (Todo.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound(f"Todo with ID {todo_id} not found")
        except DatabaseError as e:
            raise PersistenceError(f"Todo lookup failed: {e}", cause=e) from e

    def create(self, project_id, name, description=''):
        """
        Create a todo under ``project_id`` and append it to the project's list.

        Two separate writes with no transaction around them: the todo row
        first, then the project's membership. If the second write fails the
        todo row is left behind and ``InternalError`` is raised so the
        inconsistency is visible to the caller.
        """
        try:
            project = self.projects.find_by_id(project_id)
        except PersistenceError as e:
            raise InternalError('Error adding todo to project', cause=e) from e

        try:
            todo = Todo.objects.create(project=project, name=name, description=description or '')
        except DatabaseError as e:
            logger.exception("Todo insert failed for project %s", project.pk)
            raise InternalError('Error adding todo to project', cause=e) from e

        try:
            self.projects.append_todo(project, todo)
        except PersistenceError as e:
            logger.error(
                "Todo %s stored but not linked to project %s: %s", todo.pk, project.pk, e.message
            )
            raise InternalError('Error adding todo to project', cause=e) from e
        return todo

    def _save(self, todo, fields):
        todo.updated_at = timezone.now()
        try:
            todo.save(update_fields=fields + ['updated_at'])
        except DatabaseError as e:
            raise PersistenceError(f"Todo update failed: {e}", cause=e) from e
        return todo

    def update_status(self, todo_id, status):
        todo = self.find_by_id(todo_id)
        todo.status = status
        return self._save(todo, ['status'])

    def update(self, todo_id, name=None, description=None):
        """Apply only the fields that were provided."""
        todo = self.find_by_id(todo_id)
        fields = []
        if name is not None:
            todo.name = name
            fields.append('name')
        if description is not None:
            todo.description = description
            fields.append('description')
        if not fields:
            return todo
        return self._save(todo, fields)

    def soft_delete(self, todo_id):
        now = timezone.now()
        try:
            Todo.objects.filter(pk=todo_id, is_deleted=False).update(
                is_deleted=True, deleted_at=now, updated_at=now
            )
        except (DjangoValidationError, ValueError):
            logger.info("Soft delete of todo with malformed id %r ignored", todo_id)
        except DatabaseError as e:
            raise PersistenceError(f"Todo delete failed: {e}", cause=e) from e

    def list_for_project(self, project_id):
        """Live todos in the project's membership list, newest first."""
        try:
            linked = Project.todos.through.objects.filter(project_id=project_id).values('todo_id')
            return list(
                Todo.objects.filter(project_id=project_id, is_deleted=False, pk__in=linked)
                .order_by('-created_at')
            )
        except (DjangoValidationError, ValueError):
            return []
        except DatabaseError as e:
            raise PersistenceError(f"Todo listing failed: {e}", cause=e) from e

    def list_deleted(self, project_id):
        try:
            return list(Todo.objects.filter(project_id=project_id, is_deleted=True).order_by('-created_at'))
        except (DjangoValidationError, ValueError):
            return []
        except DatabaseError as e:
            raise PersistenceError(f"Todo listing failed: {e}", cause=e) from e
