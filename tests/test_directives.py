"""Tests for directive extraction and classification."""

import logging

import pytest

from siteclone.agents import (
    Final,
    NoDirective,
    ToolCall,
    extract_json_object,
    parse_directive,
)


@pytest.mark.parametrize("text", [None, 42, "", "   \n\t", "no json here", "[1, 2, 3]"])
def test_extract_returns_none_without_object(text):
    assert extract_json_object(text) is None


def test_extract_plain_object():
    assert extract_json_object('  {"tool": "fs.list"}  ') == {"tool": "fs.list"}


def test_extract_fenced_block_with_language_tag():
    text = 'Here you go:\n```json\n{"tool": "page.extract", "params": {"url": "x"}}\n```\nthanks'
    assert extract_json_object(text) == {"tool": "page.extract", "params": {"url": "x"}}


def test_extract_fenced_block_without_language_tag():
    assert extract_json_object('```\n{"a": 1}\n```') == {"a": 1}


def test_extract_uses_first_fenced_block_only():
    text = '```json\n{"first": 1}\n```\n```json\n{"second": 2}\n```'
    assert extract_json_object(text) == {"first": 1}


def test_extract_brace_span_fallback():
    text = 'I will call a tool now {"tool": "fs.glob", "params": {"pattern": "*.css"}} ok'
    assert extract_json_object(text) == {"tool": "fs.glob", "params": {"pattern": "*.css"}}


def test_extract_brace_span_that_is_not_json():
    assert extract_json_object("use {curly} and {braces}") is None


def test_extract_array_falls_back_to_inner_object():
    assert extract_json_object('[{"tool": "x"}]') == {"tool": "x"}
    assert extract_json_object("[]") is None


def test_parse_tool_call():
    directive = parse_directive(
        '{"tool": "files.read", "params": {"filePath": "a.html"}, "id": "s1",'
        ' "reasoning": "look", "expect": ["content"]}'
    )
    assert directive == ToolCall(
        tool="files.read",
        params={"filePath": "a.html"},
        id="s1",
        reasoning="look",
        expect=("content",),
    )


def test_parse_tool_call_null_params_become_empty():
    assert parse_directive('{"tool": "fs.list", "params": null}').params == {}
    assert parse_directive('{"tool": "fs.list"}').params == {}


def test_parse_final():
    directive = parse_directive(
        '{"final": true, "summary": "done", "artifacts": ["index.html"], "notes": "n"}'
    )
    assert directive == Final(summary="done", artifacts=("index.html",), notes="n")
    assert directive.to_dict() == {
        "final": True,
        "summary": "done",
        "artifacts": ["index.html"],
        "notes": "n",
    }


def test_final_without_notes_omits_key():
    assert "notes" not in parse_directive('{"final": true, "summary": "s"}').to_dict()


def test_final_wins_over_tool(caplog):
    with caplog.at_level(logging.WARNING):
        directive = parse_directive('{"final": true, "summary": "s", "tool": "fs.list"}')
    assert isinstance(directive, Final)
    assert "treating it as final" in caplog.text


@pytest.mark.parametrize(
    "text",
    [
        "just prose",
        '{"final": "yes", "summary": "s"}',
        '{"tool": ""}',
        '{"summary": "no discriminator"}',
    ],
)
def test_no_directive(text):
    assert isinstance(parse_directive(text), NoDirective)


def test_non_string_tool_becomes_tool_call():
    directive = parse_directive('{"tool": 42, "params": {}}')
    assert directive == ToolCall(tool="42", params={})


def test_final_keeps_extra_keys():
    directive = parse_directive(
        '{"final": true, "summary": "s", "artifacts": ["a.html"], "pages": 3, "site": {"host": "x"}}'
    )
    assert directive.extra == {"pages": 3, "site": {"host": "x"}}
    assert directive.to_dict() == {
        "final": True,
        "summary": "s",
        "artifacts": ["a.html"],
        "pages": 3,
        "site": {"host": "x"},
    }
