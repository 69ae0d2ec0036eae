from __future__ import annotations

from types import SimpleNamespace

import pytest

from mcp_demo.client import build_arg_parser, parse_arguments, structured_from_result


def test_structured_content_preferred() -> None:
    result = SimpleNamespace(structured_content={"result": 5}, content=[SimpleNamespace(text='{"result":6}')])
    assert structured_from_result(result) == {"result": 5}


def test_falls_back_to_text_content() -> None:
    result = SimpleNamespace(structured_content=None, content=[SimpleNamespace(text='{"iso":"x","human":"y"}')])
    assert structured_from_result(result) == {"iso": "x", "human": "y"}


def test_accepts_plain_dict_envelopes() -> None:
    assert structured_from_result({"structuredContent": {"result": 1}}) == {"result": 1}
    assert structured_from_result({"result": 1}) == {"result": 1}


def test_unrecognised_shape_raises() -> None:
    with pytest.raises(ValueError):
        structured_from_result(42)


def test_argument_parsing() -> None:
    args = build_arg_parser().parse_args(["--tool", "read_project_file", "--args", '{"relativePath": "a.txt"}'])
    assert args.tool == "read_project_file"
    assert parse_arguments(args.args) == {"relativePath": "a.txt"}
    assert args.url == "http://127.0.0.1:3000/mcp"
    with pytest.raises(ValueError):
        parse_arguments("[1, 2]")
