"""Tests for storyreel.core.slides.collection — authoring operations."""

import pytest
from pydantic import ValidationError

from storyreel.core.errors import ButtonNotFoundError, SlideNotFoundError
from storyreel.core.slides import Button, ButtonAction, Slide, SlideCollection


@pytest.fixture
def deck():
    c = SlideCollection()
    c.add(Slide(id="s1", text="One", background_url="/uploads/bg.png"))
    c.add(Slide(id="s2", text="Two", buttons=[Button(id="b1", label="Go")]))
    c.add(Slide(id="s3", text="Three"))
    return c


class TestLookup:
    def test_get_and_index(self, deck):
        assert deck.get("s2").text == "Two"
        assert deck.get("zzz") is None
        assert deck.index_of("s3") == 2
        assert deck.index_of("zzz") == -1

    def test_require_raises(self, deck):
        with pytest.raises(SlideNotFoundError) as exc:
            deck.require("zzz")
        assert isinstance(exc.value, KeyError)
        assert "zzz" in str(exc.value)


class TestAddRemove:
    def test_add_blank(self):
        c = SlideCollection()
        s = c.add()
        assert c.slides == [s]
        assert s.duration == 5000

    def test_remove(self, deck):
        assert deck.remove("s2") is True
        assert [s.id for s in deck.slides] == ["s1", "s3"]

    def test_remove_missing(self, deck):
        assert deck.remove("zzz") is False
        assert len(deck.slides) == 3


class TestDuplicate:
    def test_copy_goes_right_after_source(self, deck):
        copy = deck.duplicate("s2")
        assert [s.id for s in deck.slides][:2] == ["s1", "s2"]
        assert deck.slides[2] is copy
        assert deck.slides[3].id == "s3"

    def test_copy_has_new_id_and_no_buttons(self, deck):
        copy = deck.duplicate("s2")
        assert copy.id != "s2"
        assert copy.text == "Two"
        assert copy.buttons == []
        assert len(deck.get("s2").buttons) == 1

    def test_copy_is_independent(self, deck):
        copy = deck.duplicate("s1")
        copy.text = "Changed"
        assert deck.get("s1").text == "One"
        assert copy.background_url == "/uploads/bg.png"

    def test_missing_source(self, deck):
        with pytest.raises(SlideNotFoundError):
            deck.duplicate("zzz")


class TestPatch:
    def test_patch_fields(self, deck):
        s = deck.patch("s1", text="Uno", character_position="center")
        assert s.text == "Uno"
        assert s.character_position.value == "center"

    def test_duration_is_clamped(self, deck):
        assert deck.patch("s1", duration=250).duration == 1000
        assert deck.patch("s1", duration=7000).duration == 7000

    def test_unknown_field(self, deck):
        with pytest.raises(ValueError, match="Unknown Slide field"):
            deck.patch("s1", colour="red")

    def test_id_is_immutable(self, deck):
        with pytest.raises(ValueError, match="id cannot be changed"):
            deck.patch("s1", id="other")

    def test_invalid_value(self, deck):
        with pytest.raises(ValidationError):
            deck.patch("s1", duration="later")

    def test_missing_slide(self, deck):
        with pytest.raises(SlideNotFoundError):
            deck.patch("zzz", text="x")


class TestButtons:
    def test_add_default_button(self, deck):
        b = deck.add_button("s1")
        assert deck.get("s1").buttons == [b]
        assert b.action == ButtonAction.NEXT

    def test_add_keeps_order(self, deck):
        b2 = deck.add_button("s2", Button(id="b2", label="Second"))
        assert [b.id for b in deck.get("s2").buttons] == ["b1", b2.id]

    def test_update_button(self, deck):
        b = deck.update_button("s2", "b1", action="jump", target_slide_id="s1", response="Ok")
        assert b.jump_target == "s1"
        assert deck.get("s2").get_button("b1").response == "Ok"

    def test_update_missing_button(self, deck):
        with pytest.raises(ButtonNotFoundError):
            deck.update_button("s2", "nope", label="x")

    def test_update_unknown_field(self, deck):
        with pytest.raises(ValueError):
            deck.update_button("s2", "b1", colour="red")

    def test_remove_button(self, deck):
        assert deck.remove_button("s2", "b1") is True
        assert deck.get("s2").buttons == []
        assert deck.remove_button("s2", "b1") is False


class TestReorder:
    def test_reorder(self, deck):
        assert deck.reorder(["s3", "s1", "s2"]) is True
        assert [s.id for s in deck.slides] == ["s3", "s1", "s2"]

    def test_reorder_rejects_mismatch(self, deck):
        assert deck.reorder(["s1", "s2"]) is False
        assert deck.reorder(["s1", "s2", "s2"]) is False
        assert deck.reorder(["s1", "s2", "s4"]) is False
        assert [s.id for s in deck.slides] == ["s1", "s2", "s3"]


class TestChecksAndWire:
    def test_dangling_references(self, deck):
        deck.update_button("s2", "b1", action="jump", target_slide_id="s3")
        assert deck.dangling_references() == []
        deck.remove("s3")
        assert deck.dangling_references() == [("s2", "b1", "s3")]

    def test_summary(self, deck):
        summary = deck.to_summary()
        assert [row["index"] for row in summary] == [0, 1, 2]
        assert summary[0]["background"] == "image"
        assert summary[1]["buttons"][0]["label"] == "Go"

    def test_summary_truncates_text(self):
        c = SlideCollection()
        c.add(Slide(text="x" * 100))
        assert c.to_summary()[0]["text_snippet"] == "x" * 80 + "..."

    def test_wire_round_trip(self, deck):
        restored = SlideCollection.from_wire(deck.to_wire())
        assert restored == deck
        assert "backgroundUrl" in deck.to_wire()[0]
