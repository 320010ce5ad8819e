"""Tests for the block accumulator helpers."""
from templayer.config.settings import BlockMode
from templayer.core.blocks import clear_all_blocks, deposit, make_block_helper
from templayer.core.history import TraceRecorder


class TestDeposit:
    def test_modes(self):
        blocks = {}
        deposit(blocks, "scripts", "<b>")
        deposit(blocks, "scripts", "<c>", BlockMode.APPEND)
        deposit(blocks, "scripts", "<a>", BlockMode.PREPEND)
        assert blocks["scripts"] == "<a><b><c>"

        deposit(blocks, "scripts", "<z>", BlockMode.REPLACE)
        assert blocks["scripts"] == "<z>"

    def test_unknown_mode_string_falls_back_to_replace(self):
        assert BlockMode.from_string("sideways") is BlockMode.REPLACE
        assert BlockMode.from_string(None) is BlockMode.REPLACE
        assert BlockMode.from_string("APPEND") is BlockMode.APPEND


class TestBlockHelper:
    def test_write_then_read(self):
        blocks = {}
        block = make_block_helper(blocks, TraceRecorder())

        assert block(None, "title", "Hello") == ""
        assert block(None, "title") == "Hello"
        assert block(None, "missing") == ""

    def test_append_via_keyword_mode(self):
        blocks = {}
        block = make_block_helper(blocks, TraceRecorder())

        block(None, "scripts", "a")
        block(None, "scripts", "b", mode="append")

        assert blocks == {"scripts": "ab"}

    def test_clear_all_keeps_helper_bound(self):
        blocks = {}
        block = make_block_helper(blocks, TraceRecorder())
        block(None, "title", "Hello")

        clear_all_blocks(blocks)

        assert blocks == {}
        block(None, "title", "Again")
        assert blocks == {"title": "Again"}
