"""Tests for the command line interface."""

import json

import numpy as np
import pytest

from conftest import encode_png, gray_buffer

from card_forensics.cli import EXIT_ERROR, EXIT_LIKELY_FAKE, EXIT_OK, build_parser, main


@pytest.fixture()
def card_path(tmp_path, png_bytes):
    path = tmp_path / "card.png"
    path.write_bytes(png_bytes)
    return path


def _write(tmp_path, name, buffer):
    path = tmp_path / name
    path.write_bytes(encode_png(buffer))
    return str(path)


def test_parser_defaults():
    args = build_parser().parse_args(["analyze", "card.png"])

    assert args.command == "analyze"
    assert args.tier == "pro"
    assert args.canny_mode == "simple"
    assert args.workers == 1
    assert args.verbose is False


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_analyze_prints_report(card_path, capsys):
    code = main(["analyze", str(card_path), "--tier", "expert"])
    payload = json.loads(capsys.readouterr().out)

    assert code == EXIT_OK
    assert payload["success"] is True
    assert payload["tier"] == "EXPERT"
    assert payload["algorithmsRun"] == 8
    assert payload["results"][0]["name"] == "Canny Edge Detection"
    assert payload["results"][0]["mode"] == "simple"


def test_analyze_with_non_max_suppression(card_path, capsys):
    code = main(["analyze", str(card_path), "--canny-mode", "non_max_suppression", "--workers", "2"])
    payload = json.loads(capsys.readouterr().out)

    assert code == EXIT_OK
    edge = payload["results"][0]
    assert edge["mode"] == "non_max_suppression"
    assert "strongPixels" in edge


def test_analyze_missing_file(tmp_path, capsys):
    code = main(["analyze", str(tmp_path / "missing.png")])
    assert code == EXIT_ERROR
    assert capsys.readouterr().out == ""


def test_analyze_unknown_tier(card_path):
    assert main(["analyze", str(card_path), "--tier", "basic"]) == EXIT_ERROR


def test_compare_identical(card_path, capsys):
    code = main(["compare", str(card_path), str(card_path), "--width", "64", "--height", "48"])
    payload = json.loads(capsys.readouterr().out)

    assert code == EXIT_OK
    assert payload["score"] == 100
    assert payload["verdict"] == "LIKELY_AUTHENTIC"
    assert payload["comparisons"][0]["referenceId"] == str(card_path)


def test_compare_likely_fake(tmp_path, capsys):
    """A flat gray scan against a sharp checkerboard fails every check."""
    y, x = np.indices((8, 8))
    user = _write(tmp_path, "user.png", gray_buffer(np.full((8, 8), 128)))
    reference = _write(tmp_path, "ref.png", gray_buffer(((x + y) % 2) * 255))

    code = main(["compare", user, reference, "--width", "8", "--height", "8"])
    payload = json.loads(capsys.readouterr().out)

    assert code == EXIT_LIKELY_FAKE
    assert payload["verdict"] == "LIKELY_FAKE"
    assert len(payload["warnings"]) == 3


def test_compare_undecodable_reference(tmp_path, card_path):
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")

    assert main(["compare", str(card_path), str(broken)]) == EXIT_ERROR
