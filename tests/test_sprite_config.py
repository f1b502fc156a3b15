"""Tests for mood-to-animation lookup and sequence validation."""

import pytest

from mood_machine import Mood
from sprite_config import (
    DEFAULT_SEQUENCE,
    AnimationSequence,
    SequenceRangeError,
    SpriteConfig,
    default_animations,
    fallback_sequence,
    resolve,
    validate_sequence,
)


class TestResolve:
    def test_unknown_mood_returns_default_sequence(self):
        seq = resolve("dancing", SpriteConfig())
        assert seq.frame_indices == tuple(range(8))
        assert seq.frame_rate == 8.0
        assert seq.loop is True

    def test_missing_mood_member_returns_default(self):
        config = SpriteConfig(animations={"idle": AnimationSequence((0, 1))})
        assert resolve(Mood.SLEEPING, config) is DEFAULT_SEQUENCE

    def test_configured_mood_by_member_and_name(self):
        happy = AnimationSequence((16, 17, 18), frame_rate=8)
        config = SpriteConfig(animations={"happy": happy})
        assert resolve(Mood.HAPPY, config) is happy
        assert resolve("happy", config) is happy


class TestAnimationSequence:
    def test_from_dict_uses_manifest_keys(self):
        seq = AnimationSequence.from_dict({"frames": [1, 2, 2], "frameRate": 6, "loop": False})
        assert seq.frame_indices == (1, 2, 2)
        assert seq.frame_rate == 6.0
        assert seq.loop is False
        assert seq.to_dict() == {"frames": [1, 2, 2], "frameRate": 6.0, "loop": False}

    def test_from_dict_defaults(self):
        seq = AnimationSequence.from_dict({"frames": [0]})
        assert seq.frame_rate == 8.0
        assert seq.loop is True

    @pytest.mark.parametrize("rate", [0, -1.0])
    def test_non_positive_rate_rejected(self, rate):
        with pytest.raises(ValueError):
            AnimationSequence((0, 1), frame_rate=rate)

    def test_empty_and_negative_indices_rejected(self):
        with pytest.raises(ValueError):
            AnimationSequence(())
        with pytest.raises(ValueError):
            AnimationSequence((0, -1))

    def test_is_immutable(self):
        seq = AnimationSequence([0, 1])
        assert isinstance(seq.frame_indices, tuple)
        with pytest.raises(AttributeError):
            seq.loop = False

    def test_interval(self):
        assert AnimationSequence((0,), frame_rate=4).interval == 0.25


class TestSpriteConfig:
    def test_from_dict_without_animations_uses_grid_defaults(self):
        config = SpriteConfig.from_dict({"frameWidth": 32, "frameHeight": 48})
        assert (config.frame_width, config.frame_height) == (32, 48)
        assert set(config.animations) == {m.value for m in Mood}

    def test_from_dict_with_animations(self):
        config = SpriteConfig.from_dict({
            "frameWidth": 64,
            "frameHeight": 64,
            "animations": {"idle": {"frames": [0, 1], "frameRate": 2}},
        })
        assert list(config.animations) == ["idle"]
        assert config.animations["idle"].frame_rate == 2.0

    def test_animations_mapping_is_read_only(self):
        config = SpriteConfig(animations={"idle": DEFAULT_SEQUENCE})
        with pytest.raises(TypeError):
            config.animations["sad"] = DEFAULT_SEQUENCE


def test_default_animations_cover_the_8x7_grid():
    anims = default_animations()
    assert len(anims) == 7
    assert anims["idle"].frame_indices == tuple(range(0, 8))
    assert anims["sleeping"].frame_indices == tuple(range(48, 56))
    assert anims["celebrating"].loop is False
    assert anims["celebrating"].frame_rate == 10.0


class TestValidation:
    def test_in_range_passes(self):
        validate_sequence(AnimationSequence((0, 7)), 8)

    def test_out_of_range_raises(self):
        with pytest.raises(SequenceRangeError):
            validate_sequence(AnimationSequence((0, 8)), 8)

    def test_fallback_sequence(self):
        assert fallback_sequence(0) is None
        assert fallback_sequence(56) is DEFAULT_SEQUENCE
        assert fallback_sequence(3).frame_indices == (0, 1, 2)
