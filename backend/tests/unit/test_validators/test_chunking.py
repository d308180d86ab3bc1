"""Unit tests for chunking strategy validation."""

from __future__ import annotations

import pytest

from relay.core.exceptions import ValidationException
from relay.validators.chunking import (
    GENERIC_CHUNKING_MESSAGE,
    AutoChunking,
    StaticChunking,
    ensure_valid_chunking,
    explain_chunking_strategy,
    parse_chunking_strategy,
    validate_chunking_strategy,
)


def _static(max_size, overlap) -> dict:
    return {
        "type": "static",
        "static": {"max_chunk_size_tokens": max_size, "chunk_overlap_tokens": overlap},
    }


class TestValidChunkingStrategies:
    def test_auto(self):
        assert validate_chunking_strategy({"type": "auto"})

    @pytest.mark.parametrize(
        ("max_size", "overlap"),
        [(100, 0), (800, 400), (4096, 2048), (101, 50), (800.0, 400)],
    )
    def test_static_within_bounds(self, max_size, overlap):
        assert validate_chunking_strategy(_static(max_size, overlap))

    def test_none_is_accepted(self):
        assert validate_chunking_strategy(None)
        assert explain_chunking_strategy(None) == "Chunking strategy is optional and may be omitted"

    def test_explain_valid_returns_requirements(self):
        assert explain_chunking_strategy({"type": "auto"}) == GENERIC_CHUNKING_MESSAGE


class TestInvalidChunkingStrategies:
    @pytest.mark.parametrize(
        ("policy", "message"),
        [
            ("auto", "Chunking strategy must be an object. Received: string"),
            ([{"type": "auto"}], "Chunking strategy must be an object. Received: array"),
            ({}, "Chunking strategy must have a 'type' field"),
            ({"type": 1}, "Chunking strategy 'type' must be a string. Received: number"),
            (
                {"type": "auto", "static": {}, "extra": 1},
                "Auto chunking strategy must only contain 'type'. Unexpected fields: extra, static",
            ),
            ({"type": "static"}, "Static chunking strategy must have a 'static' object"),
            (
                {"type": "semantic"},
                "Invalid chunking strategy type 'semantic'. Valid types: auto, static",
            ),
            (
                {"type": "static", "static": [800, 400]},
                "Static chunking 'static' must be an object. Received: array",
            ),
            (
                {"type": "static", "static": {"chunk_overlap_tokens": 0}},
                "Static chunking missing required field: 'max_chunk_size_tokens'",
            ),
            (
                {"type": "static", "static": {"max_chunk_size_tokens": 800}},
                "Static chunking missing required field: 'chunk_overlap_tokens'",
            ),
            (
                _static("800", 0),
                "Static chunking 'max_chunk_size_tokens' must be an integer. Received: string",
            ),
            (
                _static(800.5, 0),
                "Static chunking 'max_chunk_size_tokens' must be an integer. Received: number",
            ),
            (
                _static(True, 0),
                "Static chunking 'max_chunk_size_tokens' must be an integer. Received: boolean",
            ),
            (
                _static(99, 0),
                "Static chunking 'max_chunk_size_tokens' must be between 100 and 4096. Received: 99",
            ),
            (
                _static(4097, 0),
                "Static chunking 'max_chunk_size_tokens' must be between 100 and 4096. Received: 4097",
            ),
            (
                _static(800, None),
                "Static chunking 'chunk_overlap_tokens' must be an integer. Received: null",
            ),
            (
                _static(800, -1),
                "Static chunking 'chunk_overlap_tokens' must not be negative. Received: -1",
            ),
            (
                _static(800, 401),
                "Static chunking 'chunk_overlap_tokens' must not exceed half of "
                "'max_chunk_size_tokens' (400). Received: 401",
            ),
        ],
    )
    def test_diagnostic_message(self, policy, message: str):
        assert validate_chunking_strategy(policy) is False
        assert explain_chunking_strategy(policy) == message

    def test_odd_max_size_allows_floor_of_half(self):
        assert validate_chunking_strategy(_static(101, 50))
        assert not validate_chunking_strategy(_static(101, 51))


class TestEnsureValidChunking:
    def test_returns_true_when_valid(self):
        assert ensure_valid_chunking(_static(800, 400)) is True

    def test_raises_with_message(self):
        with pytest.raises(ValidationException) as exc_info:
            ensure_valid_chunking(_static(50, 0))

        assert exc_info.value.status_code == 422
        assert "between 100 and 4096" in exc_info.value.message
        assert exc_info.value.detail == {"field": "chunking_strategy"}


class TestParseChunkingStrategy:
    def test_parse_auto(self):
        assert parse_chunking_strategy({"type": "auto"}) == AutoChunking()

    def test_parse_static_normalises_integral_floats(self):
        parsed = parse_chunking_strategy(_static(800.0, 200.0))
        assert parsed == StaticChunking(max_chunk_size_tokens=800, chunk_overlap_tokens=200)
        assert isinstance(parsed.max_chunk_size_tokens, int)

    def test_payload_round_trips(self):
        assert parse_chunking_strategy(_static(1000, 100)).to_payload() == _static(1000, 100)
        assert parse_chunking_strategy({"type": "auto"}).to_payload() == {"type": "auto"}

    def test_parse_invalid_raises_value_error(self):
        with pytest.raises(ValueError, match="Valid types: auto, static"):
            parse_chunking_strategy({"type": "fixed"})
