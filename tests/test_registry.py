from typing import Annotated

import pytest

from keywire.dependencies import describe_dependencies, resolve_constants
from keywire.domain import Blueprint, Dependency, Factory, Lifetime, Parameter, dependency
from keywire.errors import AmbiguousConstantsError, DependencyError, UnknownArgumentError
from keywire.introspection import describe_parameters
from keywire.registry import (
    Registry,
    as_provider,
    inferred_key,
    make_registration,
    validate_arguments,
)


class Database:
    def __init__(self, url: str):
        self.url = url


class Cache:
    pass


class Repository:
    def __init__(self, db: Database, cache: Annotated[Cache, dependency("redis")], *, retries=3):
        self.db = db
        self.cache = cache
        self.retries = retries


@pytest.fixture
def registry() -> Registry:
    return Registry()


def test_parameters_are_described_in_declaration_order():
    def service(untyped, db: Database, *args, cache: Annotated[Cache, dependency("redis")], **kwargs):
        pass

    assert describe_parameters(service) == (
        Parameter("untyped"),
        Parameter("db", Database),
        Parameter("cache", Cache, Dependency("redis"), keyword_only=True),
    )


def test_class_parameters_exclude_self():
    assert [p.name for p in describe_parameters(Repository)] == ["db", "cache", "retries"]


def test_unevaluable_annotations_fall_back_to_their_string():
    class Consumer:
        def __init__(self, widget: "UndefinedWidget"):
            self.widget = widget

    assert describe_parameters(Consumer) == (Parameter("widget", "UndefinedWidget"),)


def test_unevaluable_annotation_keeps_its_evaluable_siblings():
    class Widget:
        pass

    def make_repository(db: "Annotated[Database, dependency('replica')]", widget: "Widget"):
        pass

    assert describe_parameters(make_repository) == (
        Parameter("db", Database, Dependency("replica")),
        Parameter("widget", "Widget"),
    )


def test_classes_become_blueprints_and_callables_factories():
    def make_db():
        pass

    assert as_provider(Database) == Blueprint(Database)
    assert as_provider(make_db) == Factory(make_db)
    assert as_provider(Factory(Database)) == Factory(Database)


def test_non_callable_provider_raises():
    with pytest.raises(DependencyError, match="is not a class or function"):
        as_provider(42)


def test_blueprint_registration_records_origin():
    registration = make_registration(Repository, Repository, Lifetime.TRANSIENT)

    assert registration.origin is Repository
    assert not registration.is_singleton
    assert registration.factory(db="db", cache="cache", retries=5).retries == 5


def test_blueprint_factory_passes_keyword_only_parameters_by_keyword():
    registration = make_registration(Repository, Repository, Lifetime.SINGLETON)

    repository = registration.factory(db="db", cache="cache", retries=1)

    assert (repository.db, repository.cache, repository.retries) == ("db", "cache", 1)


def test_blueprint_factory_raises_on_unresolved_parameter():
    registration = make_registration(Database, Database, Lifetime.SINGLETON)

    with pytest.raises(DependencyError, match=r"Cannot resolve parameters \['url'\] for Database"):
        registration.factory()


def test_factory_registration_rejects_unknown_argument():
    with pytest.raises(UnknownArgumentError, match="No argument 'y' for factory for type A"):
        make_registration("A", lambda x: x, Lifetime.SINGLETON, {"x": 1, "y": 1})


def test_factory_registration_rejects_multiple_constants():
    def make_logger(name, level):
        return name, level

    with pytest.raises(AmbiguousConstantsError, match="none are dependencies"):
        make_registration("logger", make_logger, Lifetime.SINGLETON, {"name": "app", "level": "info"})


def test_multiple_arguments_allowed_when_one_is_a_dependency():
    validate_arguments(
        "logger",
        (Parameter("name"), Parameter("sink")),
        {"name": "app", "sink": dependency("sink")},
    )


def test_explicit_args_are_copied_on_registration():
    args = {"url": "postgres://localhost"}
    registration = make_registration("db", lambda url: url, Lifetime.SINGLETON, args)

    args["url"] = "changed"

    assert registration.explicit_args["url"] == "postgres://localhost"


def test_dependencies_prefer_explicit_markers_over_annotations():
    registration = make_registration(
        Repository, Repository, Lifetime.SINGLETON, {"db": dependency("special_db")}
    )

    assert describe_dependencies(registration, {}) == {
        "db": "special_db",
        "cache": "redis",
        "retries": "retries",
    }


def test_literal_arguments_are_not_dependencies():
    registration = make_registration(Repository, Repository, Lifetime.SINGLETON, {"retries": 5})

    assert "retries" not in describe_dependencies(registration, {})
    assert resolve_constants(registration.explicit_args) == {"retries": 5}


def test_declared_types_are_looked_up_by_name():
    class Widget:
        pass

    def make_panel(widget: "Widget"):
        pass

    registration = make_registration("panel", make_panel, Lifetime.SINGLETON)

    assert describe_dependencies(registration, {"Widget": Widget}) == {"widget": Widget}
    assert describe_dependencies(registration, {}) == {"widget": "Widget"}


def test_unannotated_parameters_depend_on_their_name():
    registration = make_registration("service", lambda config: config, Lifetime.SINGLETON)

    assert describe_dependencies(registration, {}) == {"config": "config"}


def test_with_registration_leaves_original_untouched(registry):
    registration = make_registration(Database, Database, Lifetime.SINGLETON)

    extended = registry.with_registration(registration)

    assert "Database" not in registry
    assert extended.get("Database") is registration
    assert extended.type_names == {"Database": Database}


def test_only_type_keys_are_indexed_by_name(registry):
    registration = make_registration("number", lambda: 1, Lifetime.SINGLETON)

    assert registry.with_registration(registration).type_names == {}


def test_key_inferred_from_class():
    assert inferred_key(Database) is Database


def test_key_inferred_from_return_type():
    def make_database() -> Database:
        pass

    assert inferred_key(make_database) is Database


def test_key_inferred_from_function_name():
    def make_settings():
        pass

    def greeter() -> None:
        pass

    assert inferred_key(make_settings) == "settings"
    assert inferred_key(greeter) == "greeter"


def test_key_inferred_from_unevaluable_return_type():
    class Widget:
        pass

    def make_widget() -> "Widget":
        return Widget()

    def make_nothing() -> "None":
        pass

    assert inferred_key(make_widget) == "Widget"
    assert inferred_key(make_nothing) == "nothing"
