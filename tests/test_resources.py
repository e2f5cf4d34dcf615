"""Tests for creating, showing, updating, renaming and deleting resources."""

from __future__ import annotations

import json

import pytest

from cyberismo.containers.project import Project
from cyberismo.errors import (
    InvalidNameError,
    InvalidOperationError,
    NotFoundError,
    PrefixMismatchError,
    ReadOnlyResourceError,
    ReferenceNotFoundError,
    SchemaValidationError,
    TypeChangeError,
    TypeMismatchError,
    WorkflowNotFoundError,
)
from cyberismo.naming import ResourceName
from cyberismo.operations import AddOperation, ChangeOperation, RankOperation, RemoveOperation, UpdateKey
from cyberismo.resources import RESOURCE_CLASSES, WorkflowResource, get_resource_class


# =============================================================================
# Registry
# =============================================================================


def test_registry_covers_every_type() -> None:
    """Every resource type has a class keyed by its folder name."""
    assert sorted(RESOURCE_CLASSES) == sorted(
        [
            "calculations",
            "cardTypes",
            "fieldTypes",
            "graphModels",
            "graphViews",
            "linkTypes",
            "reports",
            "templates",
            "workflows",
        ]
    )
    assert get_resource_class("workflows") is WorkflowResource
    assert get_resource_class("widgets") is None


def test_class_rejects_other_type(project: Project) -> None:
    """A resource class refuses names of another type."""
    with pytest.raises(TypeMismatchError):
        WorkflowResource(project, ResourceName("test", "cardTypes", "task"))


# =============================================================================
# Create and show
# =============================================================================


def test_workflow_round_trip(project: Project, workflow: WorkflowResource) -> None:
    """The created default workflow is what show returns."""
    shown = project.resource("test/workflows/basic").show()
    assert shown["name"] == "test/workflows/basic"
    assert [s["name"] for s in shown["states"]] == ["Draft", "Approved", "Deprecated"]
    assert [t["name"] for t in shown["transitions"]] == ["Create", "Approve", "Archive"]
    assert shown["transitions"][2]["fromState"] == ["*"]


def test_card_type_round_trip(project: Project, card_type) -> None:
    """Card types start with no custom fields."""
    shown = project.resource("test/cardTypes/task").show()
    assert shown["workflow"] == "test/workflows/basic"
    assert shown["customFields"] == []
    assert shown["alwaysVisibleFields"] == []


def test_card_type_requires_workflow(project: Project) -> None:
    """A card type cannot be created for a missing workflow."""
    with pytest.raises(WorkflowNotFoundError, match="Workflow 'test/workflows/missing' does not exist"):
        project.resource("test/cardTypes/task").create_card_type("test/workflows/missing")
    assert not project.resource("test/cardTypes/task").exists()


def test_field_type_round_trip(project: Project) -> None:
    """Enum field types get an empty value list."""
    project.resource("test/fieldTypes/choice").create_field_type("enum")
    shown = project.resource("test/fieldTypes/choice").show()
    assert shown["dataType"] == "enum"
    assert shown["enumValues"] == []


def test_field_type_rejects_unknown_data_type(project: Project) -> None:
    """Only supported data types can be used."""
    with pytest.raises(InvalidOperationError, match="Field type 'colour' not supported"):
        project.resource("test/fieldTypes/x").create_field_type("colour")


def test_link_type_round_trip(project: Project) -> None:
    """Link type display names default to the identifier."""
    project.resource("test/linkTypes/blocks").create()
    shown = project.resource("test/linkTypes/blocks").show()
    assert shown["outboundDisplayName"] == "blocks"
    assert shown["inboundDisplayName"] == "blocks"
    assert shown["sourceCardTypes"] == []
    assert shown["enableLinkDescription"] is False


def test_calculation_round_trip(project: Project) -> None:
    """Calculations own a placeholder logic program."""
    resource = project.resource("test/calculations/main")
    resource.create()
    shown = project.resource("test/calculations/main").show()
    assert shown["content"]["calculation"] == "% add your calculations here for 'main'\n"
    assert (resource.internal_folder / "calculation.lp").is_file()


def test_graph_model_round_trip(project: Project) -> None:
    """Graph models own model.lp."""
    project.resource("test/graphModels/deps").create()
    shown = project.resource("test/graphModels/deps").show()
    assert "deps" in shown["content"]["model"]


def test_graph_view_round_trip(project: Project) -> None:
    """Graph views own a view template and a parameter schema (parsed)."""
    project.resource("test/graphViews/deps").create()
    content = project.resource("test/graphViews/deps").show()["content"]
    assert set(content) == {"viewTemplate", "schema"}
    assert content["schema"]["type"] == "object"


def test_report_round_trip(project: Project) -> None:
    """Reports get a default category and three content files."""
    project.resource("test/reports/summary").create_report()
    shown = project.resource("test/reports/summary").show()
    assert shown["category"] == "Uncategorised report"
    assert set(shown["content"]) == {"contentTemplate", "queryTemplate", "schema"}


def test_template_round_trip(project: Project) -> None:
    """Templates own an empty card folder."""
    resource = project.resource("test/templates/page")
    resource.create()
    shown = project.resource("test/templates/page").show()
    assert shown["numberOfCards"] == 0
    assert (resource.internal_folder / "c").is_dir()


def test_create_existing_fails(project: Project, workflow: WorkflowResource) -> None:
    """A resource can be created only once."""
    with pytest.raises(InvalidOperationError, match="already exists"):
        project.resource("test/workflows/basic").create()


def test_create_with_foreign_prefix_fails(project: Project) -> None:
    """Resources can only be created under the project's prefixes."""
    with pytest.raises(PrefixMismatchError):
        project.resource("other/workflows/basic").create()


def test_create_with_invalid_identifier_fails(project: Project) -> None:
    """Identifiers with spaces are rejected."""
    with pytest.raises(InvalidNameError):
        project.resource("test/workflows/bad name").create()


def test_create_with_content(project: Project) -> None:
    """Explicit content is validated and written."""
    content = {
        "name": "test/workflows/simple",
        "displayName": "Simple",
        "states": [{"name": "Open", "category": "initial"}],
        "transitions": [{"name": "Create", "fromState": [""], "toState": "Open"}],
    }
    assert project.resource("test/workflows/simple").create(content) == content
    assert project.resource("test/workflows/simple").show() == content


def test_create_with_invalid_content_writes_nothing(project: Project) -> None:
    """Schema errors are raised before anything is written."""
    resource = project.resource("test/workflows/simple")
    with pytest.raises(SchemaValidationError):
        resource.create({"name": "test/workflows/simple", "displayName": ""})
    assert not resource.exists()


def test_create_with_mismatching_name(project: Project) -> None:
    """The document name must equal the resource name."""
    content = {
        "name": "test/workflows/other",
        "displayName": "",
        "states": [],
        "transitions": [],
    }
    with pytest.raises(SchemaValidationError, match="does not match resource name"):
        project.resource("test/workflows/simple").create(content)


def test_show_missing_resource(project: Project) -> None:
    """Showing a resource that does not exist fails."""
    with pytest.raises(NotFoundError, match="Resource 'missing' does not exist in the project"):
        project.resource("test/workflows/missing").show()


# =============================================================================
# Update
# =============================================================================


def test_scalar_update(project: Project, workflow: WorkflowResource) -> None:
    """Change sets a scalar field."""
    workflow.update("displayName", ChangeOperation("", "Basic workflow"))
    assert project.resource("test/workflows/basic").show()["displayName"] == "Basic workflow"


def test_scalar_rejects_add(workflow: WorkflowResource) -> None:
    """Array operations on scalar fields fail."""
    with pytest.raises(InvalidOperationError, match="Cannot do operation add on scalar value"):
        workflow.update("displayName", AddOperation("x"))


def test_array_update_missing_target(workflow: WorkflowResource) -> None:
    """Changing an element that is not there fails with the field name."""
    with pytest.raises(InvalidOperationError, match="Cannot perform operation on 'states'"):
        workflow.update("states", ChangeOperation({"name": "Nope"}, {"name": "Other"}))


def test_invalid_update_writes_nothing(project: Project, workflow: WorkflowResource) -> None:
    """An update producing an invalid document is not persisted."""
    before = workflow.show()
    with pytest.raises(SchemaValidationError):
        workflow.update("states", AddOperation({"name": "Review", "category": "bogus"}))
    assert project.resource("test/workflows/basic").show() == before


def test_default_workflow_rank(project: Project, workflow: WorkflowResource) -> None:
    """Ranking a state of the default workflow reorders the states."""
    workflow.update("states", RankOperation({"name": "Deprecated", "category": "closed"}, 0))
    states = project.resource("test/workflows/basic").show()["states"]
    assert [s["name"] for s in states] == ["Deprecated", "Draft", "Approved"]


def test_add_state_and_transition(project: Project, workflow: WorkflowResource) -> None:
    """New states can be referenced by new transitions."""
    workflow.update("states", AddOperation({"name": "Review", "category": "active"}))
    workflow.update("transitions", AddOperation({"name": "Submit", "fromState": ["Draft"], "toState": "Review"}))
    shown = project.resource("test/workflows/basic").show()
    assert shown["transitions"][-1]["toState"] == "Review"


def test_transition_to_unknown_state_rejected(workflow: WorkflowResource) -> None:
    """Transitions must lead to existing states."""
    with pytest.raises(SchemaValidationError, match="unknown state 'Nowhere'"):
        workflow.update("transitions", AddOperation({"name": "Go", "fromState": ["Draft"], "toState": "Nowhere"}))


def test_update_missing_resource(project: Project) -> None:
    """Updating a resource that does not exist fails."""
    with pytest.raises(NotFoundError):
        project.resource("test/workflows/missing").update("displayName", ChangeOperation("", "x"))


def test_update_empty_key(workflow: WorkflowResource) -> None:
    """An empty key is rejected."""
    with pytest.raises(InvalidOperationError, match="Update key cannot be empty"):
        workflow.update("", ChangeOperation("", "x"))


def test_custom_field_with_missing_field_type_rejected(card_type) -> None:
    """Custom fields must refer to existing field types."""
    with pytest.raises(ReferenceNotFoundError, match="Field type 'test/fieldTypes/missing' does not exist"):
        card_type.update("customFields", AddOperation({"name": "test/fieldTypes/missing"}))
    assert card_type.show()["customFields"] == []


def test_visible_field_must_be_custom_field(card_type, field_type) -> None:
    """Only custom fields of the card type can be made visible."""
    with pytest.raises(ReferenceNotFoundError):
        card_type.update("alwaysVisibleFields", AddOperation("test/fieldTypes/cost"))
    card_type.update("customFields", AddOperation({"name": "test/fieldTypes/cost"}))
    card_type.update("alwaysVisibleFields", AddOperation("test/fieldTypes/cost"))
    assert card_type.show()["alwaysVisibleFields"] == ["test/fieldTypes/cost"]


def test_card_type_workflow_must_exist(card_type) -> None:
    """Changing a card type's workflow to a missing one fails."""
    with pytest.raises(WorkflowNotFoundError):
        card_type.update("workflow", ChangeOperation("test/workflows/basic", "test/workflows/missing"))


def test_link_type_card_types_must_exist(project: Project, card_type) -> None:
    """Link types can only name existing card types."""
    link_type = project.resource("test/linkTypes/blocks")
    link_type.create()
    with pytest.raises(ReferenceNotFoundError):
        link_type.update("sourceCardTypes", AddOperation("test/cardTypes/missing"))
    link_type.update("sourceCardTypes", AddOperation("test/cardTypes/task"))
    assert link_type.show()["sourceCardTypes"] == ["test/cardTypes/task"]


def test_custom_field_must_be_a_field_type(card_type, workflow) -> None:
    """Existing resources of another type are not field types."""
    for name in ("test/workflows/basic", "test/cardTypes/task"):
        with pytest.raises(ReferenceNotFoundError, match="does not exist"):
            card_type.update("customFields", AddOperation({"name": name}))
    assert card_type.show()["customFields"] == []


def test_card_type_workflow_must_be_a_workflow(project: Project, card_type, field_type) -> None:
    """A field type cannot stand in for a workflow."""
    with pytest.raises(WorkflowNotFoundError):
        project.resource("test/cardTypes/bad").create_card_type("test/fieldTypes/cost")
    assert not project.resource_exists("test/cardTypes/bad")

    with pytest.raises(WorkflowNotFoundError):
        card_type.update("workflow", ChangeOperation("test/workflows/basic", "test/fieldTypes/cost"))
    assert card_type.show()["workflow"] == "test/workflows/basic"


def test_card_type_content_checks_reference_types(project: Project, workflow, field_type) -> None:
    """Full documents are checked for reference types too."""
    content = {
        "name": "test/cardTypes/bad",
        "displayName": "",
        "workflow": "test/fieldTypes/cost",
        "customFields": [{"name": "test/workflows/basic"}],
        "alwaysVisibleFields": [],
        "optionallyVisibleFields": [],
    }
    with pytest.raises(SchemaValidationError) as excinfo:
        project.resource("test/cardTypes/bad").create(content)
    assert excinfo.value.errors == [
        "workflow: Workflow 'test/fieldTypes/cost' does not exist in the project",
        "customFields: Field type 'test/workflows/basic' does not exist in the project",
    ]


def test_link_type_card_types_must_be_card_types(project: Project, card_type) -> None:
    """Link types reject names of other resource types."""
    link_type = project.resource("test/linkTypes/blocks")
    link_type.create()
    with pytest.raises(ReferenceNotFoundError):
        link_type.update("sourceCardTypes", AddOperation("test/workflows/basic"))
    with pytest.raises(ReferenceNotFoundError):
        link_type.update("destinationCardTypes", AddOperation("test/workflows/basic"))
    assert link_type.show()["sourceCardTypes"] == []
    assert link_type.show()["destinationCardTypes"] == []


def test_resource_exists_with_type(project: Project, workflow) -> None:
    """The optional type narrows the existence check."""
    assert project.resource_exists("test/workflows/basic", "workflows")
    assert not project.resource_exists("test/workflows/basic", "fieldTypes")


def test_field_type_disallowed_conversion(field_type) -> None:
    """Data type changes outside the conversion table are rejected."""
    with pytest.raises(InvalidOperationError, match="Cannot change data type from 'number' to 'boolean'"):
        field_type.update("dataType", ChangeOperation("number", "boolean"))


def test_field_type_to_enum_adds_values(project: Project) -> None:
    """Switching to enum adds an empty value list."""
    resource = project.resource("test/fieldTypes/label")
    resource.create_field_type("shortText")
    resource.update("dataType", ChangeOperation("shortText", "list"))
    assert resource.show()["enumValues"] == []


def test_duplicate_enum_values_rejected(project: Project) -> None:
    """Enum values must be unique."""
    resource = project.resource("test/fieldTypes/choice")
    resource.create_field_type("enum")
    resource.update("enumValues", AddOperation({"enumValue": "a"}))
    with pytest.raises(SchemaValidationError):
        resource.update("enumValues", AddOperation({"enumValue": "a", "enumDisplayValue": "A"}))


# =============================================================================
# Content files
# =============================================================================


def test_update_content_file(project: Project) -> None:
    """Content keys address the folder resource's files."""
    resource = project.resource("test/calculations/main")
    resource.create()
    resource.update(UpdateKey("content", "calculation"), ChangeOperation("", "a.\n"))
    assert project.resource("test/calculations/main").show()["content"]["calculation"] == "a.\n"


def test_update_json_content_file(project: Project) -> None:
    """Object values are written as JSON; invalid JSON is rejected."""
    resource = project.resource("test/reports/summary")
    resource.create()
    resource.update(UpdateKey("content", "schema"), ChangeOperation({}, {"type": "object"}))
    assert resource.show()["content"]["schema"] == {"type": "object"}
    with pytest.raises(SchemaValidationError):
        resource.update_file("parameterSchema.json", "{not json")


def test_update_content_unknown_key(project: Project) -> None:
    """Only known content keys can be updated."""
    resource = project.resource("test/calculations/main")
    resource.create()
    with pytest.raises(InvalidOperationError, match="Unknown content 'model'"):
        resource.update(UpdateKey("content", "model"), ChangeOperation("", "x"))


def test_update_file_outside_folder(project: Project) -> None:
    """Files outside the resource folder or not on the allowlist are refused."""
    resource = project.resource("test/calculations/main")
    resource.create()
    with pytest.raises(InvalidOperationError):
        resource.update_file("../escape.lp", "x")
    with pytest.raises(InvalidOperationError, match="not allowed"):
        resource.update_file("other.lp", "x")


def test_content_on_plain_resource(workflow: WorkflowResource) -> None:
    """Resources without content files reject content updates."""
    with pytest.raises(InvalidOperationError, match="has no content files"):
        workflow.update(UpdateKey("content", "x"), ChangeOperation("", "x"))


# =============================================================================
# Rename
# =============================================================================


def test_rename_moves_file(project: Project, workflow: WorkflowResource) -> None:
    """Renaming writes the new file, removes the old one and updates the collector."""
    old_path = workflow.file_path
    workflow.rename("test/workflows/approval")
    assert not old_path.exists()
    assert workflow.file_path.name == "approval.json"
    assert workflow.show()["name"] == "test/workflows/approval"
    assert project.resources("workflows") == ["test/workflows/approval"]


def test_rename_through_update(project: Project, workflow: WorkflowResource) -> None:
    """A change on `name` renames the resource."""
    workflow.update("name", ChangeOperation("test/workflows/basic", "test/workflows/approval"))
    assert project.resource_exists("test/workflows/approval")
    assert not project.resource_exists("test/workflows/basic")


def test_rename_folder_resource(project: Project) -> None:
    """The internal folder moves with the resource."""
    resource = project.resource("test/reports/summary")
    resource.create()
    resource.rename("test/reports/overview")
    assert resource.internal_folder.name == "overview"
    assert (resource.internal_folder / "index.adoc.hbs").is_file()
    assert not (resource.internal_folder.parent / "summary").exists()


def test_rename_type_change_fails(workflow: WorkflowResource) -> None:
    """The type segment cannot change."""
    with pytest.raises(TypeChangeError, match="Cannot change resource type"):
        workflow.rename("test/cardTypes/basic")


def test_rename_unknown_prefix_fails(workflow: WorkflowResource) -> None:
    """The new prefix must belong to the project."""
    with pytest.raises(PrefixMismatchError):
        workflow.rename("other/workflows/basic")


def test_rename_to_existing_fails(project: Project, workflow: WorkflowResource) -> None:
    """Renaming onto an existing resource fails."""
    project.resource("test/workflows/other").create()
    with pytest.raises(InvalidOperationError, match="already exists"):
        workflow.rename("test/workflows/other")


# =============================================================================
# Delete
# =============================================================================


def test_delete_then_delete(project: Project, workflow: WorkflowResource) -> None:
    """The second delete reports the resource as missing."""
    workflow.delete()
    assert not project.resource_exists("test/workflows/basic")
    with pytest.raises(NotFoundError, match="Resource 'basic' does not exist in the project"):
        project.resource("test/workflows/basic").delete()


def test_delete_folder_resource(project: Project) -> None:
    """Deleting a folder resource removes its folder."""
    resource = project.resource("test/graphViews/deps")
    resource.create()
    folder = resource.internal_folder
    resource.delete()
    assert not folder.exists()
    assert not resource.file_path.exists()


def test_deleted_field_type_stays_in_card_type(project: Project, card_type, field_type) -> None:
    """Deleting a field type leaves the card type's custom field in place."""
    card_type.update("customFields", AddOperation({"name": "test/fieldTypes/cost"}))
    field_type.delete()
    custom_fields = project.resource("test/cardTypes/task").show()["customFields"]
    assert custom_fields == [{"name": "test/fieldTypes/cost"}]
    with pytest.raises(SchemaValidationError, match="Field type 'test/fieldTypes/cost' does not exist"):
        project.resource("test/cardTypes/task").validate()


def test_usage(project: Project, card_type, workflow: WorkflowResource) -> None:
    """Usage lists the resources and cards that reference a resource."""
    card = project.create_card("test/cardTypes/task")
    assert workflow.usage() == ["test/cardTypes/task"]
    assert card_type.usage() == [card.key]


# =============================================================================
# Modules
# =============================================================================


def test_module_resources_are_read_only(project: Project, module_source: Project) -> None:
    """Imported resources can be read but not changed."""
    prefix = project.import_module(module_source.root)
    assert prefix == "base"
    shared = project.resource("base/workflows/shared")
    assert shared.show()["name"] == "base/workflows/shared"
    with pytest.raises(ReadOnlyResourceError, match="Cannot update module resources"):
        shared.update("displayName", ChangeOperation("", "x"))
    with pytest.raises(ReadOnlyResourceError):
        shared.delete()


def test_card_type_can_use_module_resources(project: Project, module_source: Project) -> None:
    """Local card types may reference imported workflows and field types."""
    project.import_module(module_source.root)
    card_type = project.resource("test/cardTypes/task")
    card_type.create_card_type("base/workflows/shared")
    card_type.update("customFields", AddOperation({"name": "base/fieldTypes/owner"}))
    assert card_type.show()["customFields"] == [{"name": "base/fieldTypes/owner"}]


def test_create_json_is_indented(project: Project, workflow: WorkflowResource) -> None:
    """Resource files are written with four-space indentation."""
    text = workflow.file_path.read_text(encoding="utf-8")
    assert text.startswith('{\n    "name"')
    assert json.loads(text)["name"] == "test/workflows/basic"
