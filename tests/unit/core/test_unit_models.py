# tests/unit/core/test_unit_models.py — v1
"""Tests for core/models.py — FingerprintInfo, CompileResult, PassState."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from assetpipe.core.models import CompileResult, FingerprintInfo, PassState, TransformOutput


class TestFingerprintInfo:
    def test_defaults(self):
        info = FingerprintInfo(hash="abc")
        assert info.source_code is None
        assert info.media_type is None
        assert not (info.is_minified or info.is_vendored or info.has_source_map or info.is_binary)

    def test_flags_combine_freely(self):
        info = FingerprintInfo(
            hash="abc", is_minified=True, is_vendored=True,
            has_source_map=True, is_binary=True,
        )
        assert info.is_minified and info.is_binary

    def test_with_source_returns_copy(self):
        info = FingerprintInfo(hash="abc", source_code="a", media_type="text/coffeescript")
        nxt = info.with_source("b", "text/html")
        assert nxt.source_code == "b"
        assert nxt.media_type == "text/html"
        assert nxt.hash == "abc"
        assert info.source_code == "a"


class TestCompileResult:
    def test_precompiled(self):
        r = CompileResult(code="x", media_type="text/css")
        assert r.is_precompiled
        assert r.dependent_files == []

    def test_empty_is_not_precompiled(self):
        assert CompileResult().is_precompiled is False

    def test_code_without_media_type_rejected(self):
        with pytest.raises(ValidationError):
            CompileResult(code="x")

    def test_media_type_without_code_rejected(self):
        with pytest.raises(ValidationError):
            CompileResult(media_type="text/css")

    def test_empty_code_is_valid(self):
        assert CompileResult(code="", media_type="text/css").is_precompiled

    def test_dependent_files_deduplicated_in_order(self):
        r = CompileResult(code="x", media_type="text/css", dependent_files=["b", "a", "b"])
        assert r.dependent_files == ["b", "a"]


class TestPassState:
    def test_scratch_is_per_instance(self):
        a = PassState(file_path="a")
        b = PassState(file_path="b")
        a.scratch["k"] = 1
        assert b.scratch == {}


class TestTransformOutput:
    def test_from_dict(self):
        out = TransformOutput.model_validate({"code": "x", "media_type": "text/css"})
        assert out.code == "x"
