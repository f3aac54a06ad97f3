from unittest.mock import patch

import pytest
from django.db import DatabaseError

from projects.models import Project, Todo
from projects.repositories import ProjectRepository, TodoRepository
from todo_service.exceptions import InternalError, NotFound, PersistenceError

from .conftest import add_todo, backdate

pytestmark = pytest.mark.django_db


@pytest.fixture
def projects():
    return ProjectRepository()


@pytest.fixture
def todos(projects):
    return TodoRepository(projects)


def test_create_project_starts_active_and_empty(projects):
    project = projects.create('Sprint1', 'u1')

    stored = Project.objects.get(pk=project.pk)
    assert stored.is_deleted is False
    assert stored.deleted_at is None
    assert list(stored.todos.all()) == []
    assert stored.owner == 'u1'


def test_create_project_wraps_storage_failure(projects):
    with patch.object(Project.objects, 'create', side_effect=DatabaseError('disk full')):
        with pytest.raises(PersistenceError):
            projects.create('Sprint1', 'u1')


def test_find_by_id_missing_and_malformed_ids(projects):
    with pytest.raises(NotFound):
        projects.find_by_id('8d3c2a5e-0000-4000-8000-000000000000')
    with pytest.raises(NotFound):
        projects.find_by_id('not-a-uuid')


def test_find_by_id_returns_soft_deleted_project(projects):
    project = projects.create('Old', 'u1')
    projects.soft_delete(project.pk, 'u1')

    found = projects.find_by_id(project.pk)
    assert found.is_deleted is True


def test_update_replaces_title(projects):
    project = projects.create('Draft', 'u1')
    updated = projects.update(project.pk, 'Final')

    assert updated.title == 'Final'
    assert Project.objects.get(pk=project.pk).title == 'Final'


def test_list_active_filters_owner_and_deleted_and_sorts_newest_first(projects):
    older = backdate(projects.create('older', 'u1'), minutes=10)
    newer = backdate(projects.create('newer', 'u1'), minutes=1)
    gone = projects.create('gone', 'u1')
    projects.create('someone else', 'u2')
    projects.soft_delete(gone.pk, 'u1')

    assert [p.pk for p in projects.list_active('u1')] == [newer.pk, older.pk]
    assert [p.pk for p in projects.list_deleted('u1')] == [gone.pk]


def test_list_active_populates_only_live_todos(projects):
    project = projects.create('Sprint1', 'u1')
    first = backdate(add_todo(project, 'first'), minutes=5)
    second = add_todo(project, 'second')
    dropped = add_todo(project, 'dropped')
    Todo.objects.filter(pk=dropped.pk).update(is_deleted=True)

    (listed,) = projects.list_active('u1')
    assert [t.pk for t in listed.active_todos] == [second.pk, first.pk]


def test_soft_delete_is_idempotent_and_tolerates_unknown_ids(projects):
    keep = projects.create('keep', 'u1')
    project = projects.create('drop', 'u1')

    projects.soft_delete(project.pk, 'u1')
    first_stamp = Project.objects.get(pk=project.pk).deleted_at
    remaining = projects.soft_delete(project.pk, 'u1')

    assert Project.objects.get(pk=project.pk).deleted_at == first_stamp
    assert [p.pk for p in remaining] == [keep.pk]
    assert [p.pk for p in projects.soft_delete('missing-id', 'u1')] == [keep.pk]


def test_create_todo_links_it_to_project(projects, todos):
    project = projects.create('Sprint1', 'u1')
    todo = todos.create(project.pk, 'Write spec', 'the long version')

    assert todo.project_id == project.pk
    assert todo.status is False
    assert list(Project.objects.get(pk=project.pk).todos.all()) == [todo]


def test_create_todo_accepts_soft_deleted_project(projects, todos):
    project = projects.create('Archived', 'u1')
    projects.soft_delete(project.pk, 'u1')

    todo = todos.create(project.pk, 'late item')
    assert todo.project_id == project.pk


def test_create_todo_unknown_project_is_not_found(todos):
    with pytest.raises(NotFound):
        todos.create('5f0e8f44-0000-4000-8000-000000000000', 'orphan')


def test_create_todo_surfaces_failed_project_append(projects, todos):
    project = projects.create('Sprint1', 'u1')

    with patch.object(ProjectRepository, 'append_todo', side_effect=PersistenceError('link failed')):
        with pytest.raises(InternalError) as excinfo:
            todos.create(project.pk, 'half written')

    assert isinstance(excinfo.value.cause, PersistenceError)
    # The todo row stays behind; the project never learned about it
    stranded = Todo.objects.get(name='half written')
    assert stranded.project_id == project.pk
    assert list(Project.objects.get(pk=project.pk).todos.all()) == []


def test_create_todo_failed_insert_never_touches_project(projects, todos):
    project = projects.create('Sprint1', 'u1')

    with patch.object(Todo.objects, 'create', side_effect=DatabaseError('locked')):
        with patch.object(ProjectRepository, 'append_todo') as append:
            with pytest.raises(InternalError):
                todos.create(project.pk, 'never stored')

    append.assert_not_called()


def test_update_status_and_partial_update_refresh_updated_at(projects, todos):
    project = projects.create('Sprint1', 'u1')
    todo = todos.create(project.pk, 'Write spec', 'draft')
    before = todo.updated_at

    done = todos.update_status(todo.pk, True)
    assert done.status is True
    assert done.updated_at >= before

    renamed = todos.update(todo.pk, name='Write the spec')
    stored = Todo.objects.get(pk=todo.pk)
    assert renamed.name == 'Write the spec'
    assert stored.description == 'draft'
    assert stored.status is True


def test_todo_updates_on_missing_id_are_not_found(todos):
    with pytest.raises(NotFound):
        todos.update_status('0b7a1c1e-0000-4000-8000-000000000000', True)
    with pytest.raises(NotFound):
        todos.update('nope', name='x')


def test_todo_soft_delete_twice_changes_nothing_more(projects, todos):
    project = projects.create('Sprint1', 'u1')
    todo = todos.create(project.pk, 'Write spec')

    todos.soft_delete(todo.pk)
    first = Todo.objects.get(pk=todo.pk)
    todos.soft_delete(todo.pk)
    todos.soft_delete('not-a-uuid')
    second = Todo.objects.get(pk=todo.pk)

    assert first.is_deleted is True
    assert (second.deleted_at, second.updated_at) == (first.deleted_at, first.updated_at)
    assert [t.pk for t in todos.list_deleted(project.pk)] == [todo.pk]
    assert todos.list_for_project(project.pk) == []


def test_update_with_no_fields_leaves_updated_at_alone(projects, todos):
    project = projects.create('Sprint1', 'u1')
    todo = todos.create(project.pk, 'Write spec', 'draft')
    before = Todo.objects.get(pk=todo.pk).updated_at

    unchanged = todos.update(todo.pk)

    assert unchanged.name == 'Write spec'
    assert Todo.objects.get(pk=todo.pk).updated_at == before


def test_list_for_project_follows_membership(projects, todos):
    project = projects.create('Sprint1', 'u1')
    older = backdate(todos.create(project.pk, 'older'), minutes=5)
    newer = todos.create(project.pk, 'newer')
    gone = todos.create(project.pk, 'gone')
    todos.soft_delete(gone.pk)

    with patch.object(ProjectRepository, 'append_todo', side_effect=PersistenceError('link failed')):
        with pytest.raises(InternalError):
            todos.create(project.pk, 'stranded')

    assert [t.pk for t in todos.list_for_project(project.pk)] == [newer.pk, older.pk]
    assert todos.list_for_project('not-a-uuid') == []
