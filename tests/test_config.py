"""Tests for CragConfig."""

from __future__ import annotations

from pathlib import Path

import pytest

from crag_memory.config import CragConfig


class TestCragConfig:
    def test_defaults(self):
        config = CragConfig()
        assert config.data_dir == "crag_data"
        assert config.max_features == 5000
        assert config.min_similarity == 0.01
        assert config.autosave is True
        assert config.snapshot_path == Path("crag_data") / "conversations.json"

    def test_from_env(self):
        config = CragConfig.from_env(
            {
                "CRAG_MEMORY_DATA_DIR": "/tmp/history",
                "CRAG_MEMORY_MAX_FEATURES": "100",
                "CRAG_MEMORY_MIN_SIMILARITY": "0.2",
                "CRAG_MEMORY_AUTOSAVE": "off",
            }
        )
        assert config == CragConfig(
            data_dir="/tmp/history", max_features=100, min_similarity=0.2, autosave=False
        )

    def test_from_empty_env_uses_defaults(self):
        assert CragConfig.from_env({}) == CragConfig()

    @pytest.mark.parametrize(
        "env",
        [
            {"CRAG_MEMORY_MAX_FEATURES": "lots"},
            {"CRAG_MEMORY_MAX_FEATURES": "0"},
            {"CRAG_MEMORY_MIN_SIMILARITY": "1.5"},
            {"CRAG_MEMORY_AUTOSAVE": "maybe"},
        ],
    )
    def test_invalid_env_values(self, env):
        with pytest.raises(ValueError):
            CragConfig.from_env(env)
