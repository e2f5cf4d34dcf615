"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from cyberismo.containers.project import Project
from cyberismo.resources import CardTypeResource, FieldTypeResource, WorkflowResource


@pytest.fixture
def project(tmp_path: Path) -> Project:
    """Empty project with prefix `test`."""
    return Project.create(tmp_path / "project", "test", "Test project")


@pytest.fixture
def workflow(project: Project) -> WorkflowResource:
    """Default workflow `test/workflows/basic` (Draft, Approved, Deprecated)."""
    resource = project.resource("test/workflows/basic")
    resource.create()
    return resource


@pytest.fixture
def card_type(project: Project, workflow: WorkflowResource) -> CardTypeResource:
    """Card type `test/cardTypes/task` using the default workflow."""
    resource = project.resource("test/cardTypes/task")
    resource.create_card_type(str(workflow.name))
    return resource


@pytest.fixture
def field_type(project: Project) -> FieldTypeResource:
    """Number field type `test/fieldTypes/cost`."""
    resource = project.resource("test/fieldTypes/cost")
    resource.create_field_type("number")
    return resource


@pytest.fixture
def module_source(tmp_path: Path) -> Project:
    """Separate project with prefix `base` to import as a module."""
    source = Project.create(tmp_path / "base", "base", "Base module")
    source.resource("base/workflows/shared").create()
    source.resource("base/fieldTypes/owner").create_field_type("person")
    return source
