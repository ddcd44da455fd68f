"""Tests for the TemplateRenderer."""

import json

import pytest

from whatsapp_otp.exceptions import ValidationError
from whatsapp_otp.otp.templates import BUILTIN_TEMPLATES, TemplateRenderer


@pytest.fixture
def renderer():
    return TemplateRenderer(default_company="Fallback Co")


def test_unknown_key_falls_back_to_default(renderer):
    text = renderer.render("unknownKey", {"otp": "1234", "expiry": "5", "company": "Acme"})
    assert text == "Your OTP is: *1234*. It will expire in *5* minutes. Powered by *Acme*."


def test_login_template_emphasises_extra_variables(renderer):
    text = renderer.render(
        "login", {"otp": "654321", "expiry": "5", "company": "Acme", "name": "Alex"}
    )
    assert text.startswith("Welcome, *Alex*!")
    assert "*654321*" in text


def test_missing_company_uses_fallback(renderer):
    text = renderer.render("default", {"otp": "1", "expiry": "2"})
    assert text.endswith("Powered by *Fallback Co*.")


def test_empty_company_uses_fallback(renderer):
    text = renderer.render("default", {"otp": "1", "expiry": "2", "company": ""})
    assert "*Fallback Co*" in text


@pytest.mark.parametrize("missing", ["otp", "expiry"])
def test_required_standard_variables(renderer, missing):
    variables = {"otp": "1", "expiry": "2", "company": "Acme"}
    del variables[missing]
    with pytest.raises(ValidationError):
        renderer.render("default", variables)


def test_empty_extra_value_renders_blank(renderer):
    text = renderer.render("login", {"otp": "1", "expiry": "2", "company": "A", "name": ""})
    assert text.startswith("Welcome, ! ")


def test_unsupplied_placeholder_left_verbatim(renderer):
    text = renderer.render("transaction", {"otp": "1", "expiry": "2", "company": "A", "name": "Bo"})
    assert "{{amount}}" in text
    assert "*Bo*" in text


def test_substitution_is_not_recursive(renderer):
    text = renderer.render(
        "login",
        {"otp": "1", "expiry": "2", "company": "A", "name": "{{otp}}"},
    )
    assert "Welcome, *{{otp}}*!" in text


def test_table_is_read_only(renderer):
    with pytest.raises(TypeError):
        renderer.templates["default"] = "hacked"  # type: ignore[index]


def test_keys_cover_builtin_table(renderer):
    assert set(renderer.keys()) == set(BUILTIN_TEMPLATES)
    assert len(renderer.keys()) == 30


def test_table_without_default_rejected():
    with pytest.raises(ValueError):
        TemplateRenderer({"login": "{{otp}}"})


def test_from_file_merges_overrides(tmp_path):
    path = tmp_path / "templates.json"
    path.write_text(json.dumps({"promo": "Code {{otp}} for {{deal}} from {{company}}"}))

    renderer = TemplateRenderer.from_file(path, default_company="Acme")

    assert "login" in renderer.keys()
    text = renderer.render("promo", {"otp": "42", "expiry": "5", "deal": "50% off"})
    assert text == "Code *42* for *50% off* from *Acme*"


def test_from_file_rejects_non_object(tmp_path):
    path = tmp_path / "templates.json"
    path.write_text(json.dumps(["not", "an", "object"]))
    with pytest.raises(ValueError):
        TemplateRenderer.from_file(path)


def test_from_file_none_uses_builtins():
    assert dict(TemplateRenderer.from_file(None).templates) == dict(BUILTIN_TEMPLATES)
