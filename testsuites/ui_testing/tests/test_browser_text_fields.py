"""
================================================================================
Text Field and Lookup Tests (real browser)
================================================================================

Login form scenario driven through the shipped object repository and test
data (LoginPage / LoginData).

================================================================================
"""

import allure
import pytest

from ui_engine.exceptions import ElementNotFoundError

LOGIN_HTML = """
<html>
  <head><title>Sign in</title></head>
  <body>
    <form onsubmit="return false">
      <input id="username" value="prefilled">
      <input id="password" type="password">
      <button type="button" data-testid="btn-login"
              onclick="document.querySelector('#result').textContent =
                       'Hello ' + document.querySelector('#username').value">Login</button>
    </form>
    <div id="result"></div>
  </body>
</html>
"""

SAVE_HTML = """
<html>
  <head><title>Profile</title></head>
  <body>
    <button type="button" onclick="document.title = 'Saved'">Save</button>
    <div style="position: fixed; top: 0; left: 0; width: 100%; height: 100%;"></div>
  </body>
</html>
"""


@allure.epic("UI Engine")
@allure.feature("Text Fields")
class TestTextFields:

    @allure.title("Login scenario resolves data and replaces prefilled text")
    @pytest.mark.P0
    @pytest.mark.smoke
    def test_login_scenario(self, page, steps):
        page.set_content(LOGIN_HTML)

        with steps.scenario("TC-001"):
            steps.verify_page_title("Sign in")
            steps.enter_text("LoginPage.Username", "Username", "LoginPage")
            steps.enter_text("LoginPage.Password", "Password", "LoginPage")
            steps.click_on("LoginButton", "LoginPage")

        assert page.input_value("#username") == "qa1"
        assert page.input_value("#password") == "secret"
        assert page.inner_text("#result") == "Hello qa1"
        assert steps.reporter.failures() == []

    @allure.title("Clearing and reading a field")
    @pytest.mark.P1
    def test_clear_and_read(self, page, steps):
        page.set_content(LOGIN_HTML)

        assert steps.get_field_value("Username", "LoginPage") == "prefilled"
        steps.clear_field("Username", "LoginPage")

        assert steps.get_field_value("Username", "LoginPage") == ""

    @allure.title("Missing element fails with page identity")
    @pytest.mark.P1
    def test_missing_element(self, page, steps):
        page.set_content(LOGIN_HTML)

        with pytest.raises(ElementNotFoundError) as excinfo:
            steps.click_on("ErrorBanner", "LoginPage")

        assert excinfo.value.title == "Sign in"
        assert not steps.is_element_visible("ErrorBanner", "LoginPage", timeout=200)
        assert [e.step for e in steps.reporter.failures()] == ["Click element"]

    @allure.title("Covered button is clicked through the DOM")
    @pytest.mark.P2
    def test_click_fallback(self, page, steps):
        page.set_content(SAVE_HTML)

        steps.click_on("SaveButton", "ProfilePage")

        assert page.title() == "Saved"
