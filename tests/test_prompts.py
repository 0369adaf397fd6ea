"""Tests for blogforge.prompts."""

import pytest

from blogforge.agents.stages import STAGES
from blogforge.models import BlogRequest
from blogforge.prompts import render, template_names


def test_every_stage_template_renders():
    request = BlogRequest(topic="Topic")
    for descriptor in STAGES:
        assert render(descriptor.system_template).strip()
        assert render(descriptor.user_template, **descriptor.build_vars(request, "PREVIOUS"))


def test_previous_output_kept_verbatim():
    previous = "  line one\n\nline two with trailing space   \n"

    rendered = render("lint_user", content=previous)

    assert previous in rendered


def test_seo_prompt_asks_for_json_keys():
    rendered = render("seo_user", content="body", topic="Topic")

    for key in ("title", "metaDescription", "tags", "summary"):
        assert key in rendered


def test_missing_variable_raises():
    with pytest.raises(KeyError, match="research_user"):
        render("research_user", topic="only topic")


def test_missing_template_raises():
    with pytest.raises(FileNotFoundError):
        render("no_such_template")


def test_system_and_user_template_per_stage():
    names = template_names()

    assert len(names) == 10
    for descriptor in STAGES:
        assert descriptor.system_template in names
        assert descriptor.user_template in names
