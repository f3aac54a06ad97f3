import datetime

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.authentication import issue_token
from accounts.models import User
from projects.models import Project, Todo


def make_user(email='ada@example.com', mobile='+15550100', password='s3cret-pass', name='Ada'):
    return User.objects.create_user(
        username=email, email=email, password=password, name=name, mobile=mobile
    )


def backdate(instance, minutes):
    """Pin created_at so ordering assertions don't depend on clock resolution."""
    stamp = timezone.now() - datetime.timedelta(minutes=minutes)
    type(instance).objects.filter(pk=instance.pk).update(created_at=stamp)
    instance.refresh_from_db()
    return instance


@pytest.fixture
def user(db):
    return make_user()


@pytest.fixture
def identity(user):
    return str(user.pk)


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(user)}")
    return client


@pytest.fixture
def project(db, identity):
    return Project.objects.create(title='Sprint1', owner=identity)


@pytest.fixture
def export_settings(settings, tmp_path):
    settings.GITHUB_TOKEN = 'test-token'
    settings.GIST_API_URL = 'https://gist.example.test/gists'
    settings.EXPORT_OUTPUT_DIR = str(tmp_path / 'gists')
    return settings


def add_todo(project, name, status=False, description=''):
    todo = Todo.objects.create(project=project, name=name, status=status, description=description)
    project.todos.add(todo)
    return todo
