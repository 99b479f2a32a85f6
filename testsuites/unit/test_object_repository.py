import json

import pytest
import yaml

from ui_engine.exceptions import (
    ObjectRepositoryError,
    RegistryError,
    UnknownElementError,
    UnknownPageError,
)
from ui_engine.object_repository import (
    LocatorDescriptor,
    LocatorStrategy,
    ObjectRepository,
    infer_strategy,
)


def test_bare_expressions_infer_strategy(repository):
    repository.register_page("LoginPage", {
        "Username": "#username",
        "Password": "//input[@id='password']",
        "Grouped": "(//button)[2]",
    })

    assert repository.get_locator("LoginPage", "Username").selector == "css=#username"
    assert repository.get_locator("LoginPage", "Password").strategy is LocatorStrategy.XPATH
    assert repository.get_locator("LoginPage", "Grouped").selector == "xpath=(//button)[2]"


@pytest.mark.parametrize("entry,selector", [
    ({"css": ".btn"}, "css=.btn"),
    ({"xpath": "//a"}, "xpath=//a"),
    ({"id": "submit"}, "id=submit"),
    ({"name": "email"}, 'css=[name="email"]'),
    ({"class_name": "primary"}, "css=.primary"),
    ({"text": "Sign in"}, "text=Sign in"),
    ({"strategy": "test-id", "expression": "btn-login"}, "data-testid=btn-login"),
    ({"expression": "./span"}, "xpath=./span"),
])
def test_strategy_rendering(repository, entry, selector):
    repository.register_page("Page", {"Element": entry})
    assert repository.get_locator("Page", "Element").selector == selector


def test_unknown_strategy_rejected(repository):
    with pytest.raises(ObjectRepositoryError):
        repository.register_page("Page", {"Element": {"sonar": "ping"}})


def test_unknown_page_and_unknown_element_are_distinct(repository):
    repository.register_page("LoginPage", {"Username": "#username"})

    with pytest.raises(UnknownPageError) as page_error:
        repository.get_locator("Dashboard", "Username")
    with pytest.raises(UnknownElementError) as element_error:
        repository.get_locator("LoginPage", "Passwrd")

    assert page_error.value.available == ["LoginPage"]
    assert element_error.value.available == ["Username"]
    assert not isinstance(page_error.value, UnknownElementError)
    assert isinstance(element_error.value, RegistryError)


def test_identical_registration_is_a_no_op(repository):
    repository.register_page("LoginPage", {"Username": "#username"})
    repository.register_page("LoginPage", {"Username": "#username"})

    assert repository.elements_for_page("LoginPage") == ["Username"]


def test_conflicting_registration_raises(repository):
    repository.register_page("LoginPage", {"Username": "#username"})

    with pytest.raises(ObjectRepositoryError):
        repository.register(
            LocatorDescriptor("LoginPage", "Username", LocatorStrategy.CSS, "#user")
        )
    assert repository.get_raw_expression("LoginPage", "Username") == "#username"


def test_load_file_yaml_and_json(repository, tmp_path):
    yaml_file = tmp_path / "LoginPage.yaml"
    yaml_file.write_text(yaml.dump({"elements": {"Username": "#username"}}), encoding="utf-8")
    json_file = tmp_path / "dash.json"
    json_file.write_text(json.dumps({"page": "Dashboard", "Title": "h1"}), encoding="utf-8")

    repository.load_file(yaml_file)
    repository.load_file(json_file)

    assert repository.loaded_pages() == ["Dashboard", "LoginPage"]
    assert repository.is_element_exists("Dashboard", "Title")
    assert not repository.is_element_exists("Dashboard", "page")


def test_loading_twice_is_idempotent(repository, tmp_path):
    path = tmp_path / "LoginPage.yaml"
    path.write_text(yaml.dump({"Username": "#username"}), encoding="utf-8")

    repository.load_file(path)
    repository.load_file(tmp_path / "." / "LoginPage.yaml")

    assert repository.elements_for_page("LoginPage") == ["Username"]


def test_invalid_file_raises(repository, tmp_path):
    path = tmp_path / "Broken.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ObjectRepositoryError):
        repository.load_file(path)
    with pytest.raises(ObjectRepositoryError):
        repository.load_file(tmp_path / "absent.yaml")


def test_shared_instance_loads_directory_once(project_root):
    directory = project_root / "testsuites/ui_testing/resources/object_repository"

    repo = ObjectRepository.instance(directory)
    again = ObjectRepository.instance(directory)

    assert repo is again
    assert {"LoginPage", "ProfilePage"} <= set(repo.loaded_pages())
    assert repo.get_locator("LoginPage", "LoginButton").selector == "data-testid=btn-login"


def test_infer_strategy():
    assert infer_strategy("  //div") is LocatorStrategy.XPATH
    assert infer_strategy("div > span") is LocatorStrategy.CSS
