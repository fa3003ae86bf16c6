import pytest

from clipsense.cursor.auto_zoom import generate_auto_zoom_drafts
from clipsense.cursor.models import (
    CursorEventBounds,
    CursorPoint,
    CursorSample,
    CursorTrack,
    CursorTrackEvent,
)


def sample(time_ms, x, y, click=False, visible=True):
    return CursorSample(time_ms=time_ms, x=x, y=y, click=click, visible=visible)


def click_event(time_ms, x, y):
    return CursorTrackEvent(type="click", start_ms=time_ms, end_ms=time_ms + 80, point=CursorPoint(x=x, y=y))


def idle_samples(duration_ms, step_ms=1_000):
    return [sample(t, 0.5, 0.5) for t in range(0, duration_ms, step_ms)]


class TestClicks:
    def test_single_click_sample_with_pre_roll(self):
        track = CursorTrack(
            samples=[sample(0, 0.2, 0.3), sample(350, 0.22, 0.31, click=True), sample(700, 0.25, 0.34)]
        )

        drafts = generate_auto_zoom_drafts(track, duration_ms=2_000)

        assert len(drafts) == 1
        draft = drafts[0]
        assert draft.reason == "click"
        assert (draft.start_ms, draft.end_ms) == (130, 1_750)
        assert draft.depth == 3
        assert draft.focus.cx == pytest.approx(0.22)
        assert draft.focus.cy == pytest.approx(0.31)

    def test_dense_clicks_merge_into_one_region(self):
        track = CursorTrack(
            samples=[sample(120, 0.3, 0.3, click=True), sample(400, 0.31, 0.33, click=True), sample(1_200, 0.5, 0.4)]
        )

        drafts = generate_auto_zoom_drafts(track, duration_ms=2_000)

        assert len(drafts) == 1
        assert (drafts[0].start_ms, drafts[0].end_ms) == (0, 1_800)

    def test_click_events_replace_inferred_clicks(self):
        track = CursorTrack(
            samples=[sample(0, 0.5, 0.5), sample(5_000, 0.1, 0.1, click=True), sample(9_000, 0.5, 0.5)],
            events=[click_event(1_000, 0.8, 0.2)],
        )

        drafts = generate_auto_zoom_drafts(track, duration_ms=10_000)

        assert [(d.start_ms, d.end_ms) for d in drafts] == [(780, 2_400)]
        assert drafts[0].focus.cx == pytest.approx(0.8)

    def test_duplicate_click_events_are_deduplicated(self):
        track = CursorTrack(
            samples=idle_samples(10_000),
            events=[click_event(1_000, 0.2, 0.2), click_event(1_100, 0.9, 0.9)],
        )

        drafts = generate_auto_zoom_drafts(track, duration_ms=10_000)

        assert len(drafts) == 1
        assert drafts[0].focus.cx == pytest.approx(0.2)

    def test_hidden_click_samples_are_ignored(self):
        track = CursorTrack(samples=[sample(0, 0.5, 0.5), sample(500, 0.5, 0.5, click=True, visible=False)])

        assert generate_auto_zoom_drafts(track, duration_ms=2_000) == []

    def test_region_cap_keeps_requested_count(self):
        samples = [sample(index * 2_200 + 300, 0.2 + index * 0.03, 0.3, click=True) for index in range(10)]

        drafts = generate_auto_zoom_drafts(CursorTrack(samples=samples), duration_ms=24_000, max_regions=4)

        assert len(drafts) == 4
        assert [d.start_ms for d in drafts] == sorted(d.start_ms for d in drafts)

    def test_short_recording_expands_region_to_floor(self):
        track = CursorTrack(samples=[sample(0, 0.5, 0.5), sample(480, 0.4, 0.4, click=True)])

        drafts = generate_auto_zoom_drafts(track, duration_ms=500)

        assert (drafts[0].start_ms, drafts[0].end_ms) == (80, 500)


class TestSelections:
    def test_selection_uses_bounds_center_and_dynamic_hold(self):
        bounds = CursorEventBounds(min_x=0.2, min_y=0.4, max_x=0.4, max_y=0.5, width=0.2, height=0.1)
        event = CursorTrackEvent(
            type="selection", start_ms=1_000, end_ms=1_500, point=CursorPoint(x=0.4, y=0.5), bounds=bounds
        )

        track = CursorTrack(samples=idle_samples(10_000), events=[event])

        drafts = generate_auto_zoom_drafts(track, duration_ms=10_000)

        assert len(drafts) == 1
        draft = drafts[0]
        assert draft.reason == "selection"
        assert draft.depth == 3
        # hold = 1550 + clamp(500 * 0.9 + 0.2 * 2000, 0, 2200) = 2400
        assert (draft.start_ms, draft.end_ms) == (880, 3_400)
        assert draft.focus.cx == pytest.approx(0.3)
        assert draft.focus.cy == pytest.approx(0.45)

    def test_tiny_quick_selection_is_skipped(self):
        event = CursorTrackEvent(
            type="selection",
            start_ms=1_000,
            end_ms=1_050,
            point=CursorPoint(x=0.4, y=0.5),
            start_point=CursorPoint(x=0.4, y=0.5),
            end_point=CursorPoint(x=0.401, y=0.5),
        )

        track = CursorTrack(samples=idle_samples(5_000), events=[event])

        assert generate_auto_zoom_drafts(track, duration_ms=5_000) == []

    def test_selection_wins_merge_over_click(self):
        bounds = CursorEventBounds(min_x=0.6, min_y=0.6, max_x=0.8, max_y=0.8, width=0.2, height=0.2)
        events = [
            click_event(1_000, 0.1, 0.1),
            CursorTrackEvent(
                type="selection", start_ms=1_500, end_ms=2_000, point=CursorPoint(x=0.8, y=0.8), bounds=bounds
            ),
        ]

        drafts = generate_auto_zoom_drafts(CursorTrack(samples=idle_samples(10_000), events=events), duration_ms=10_000)

        assert len(drafts) == 1
        assert drafts[0].reason == "selection"
        assert drafts[0].start_ms == 780
        assert drafts[0].focus.cx == pytest.approx(0.7)

    def test_selection_outranks_clicks_when_capped(self):
        bounds = CursorEventBounds(min_x=0.1, min_y=0.1, max_x=0.2, max_y=0.2, width=0.1, height=0.1)
        events = [click_event(t, 0.5, 0.5) for t in (1_000, 5_000, 9_000)]
        events.append(
            CursorTrackEvent(
                type="selection", start_ms=13_000, end_ms=13_400, point=CursorPoint(x=0.2, y=0.2), bounds=bounds
            )
        )

        drafts = generate_auto_zoom_drafts(
            CursorTrack(samples=idle_samples(20_000), events=events), duration_ms=20_000, max_regions=1
        )

        assert [d.reason for d in drafts] == ["selection"]


class TestMovement:
    def test_falls_back_to_movement_without_clicks(self):
        track = CursorTrack(
            samples=[
                sample(0, 0.1, 0.1),
                sample(100, 0.4, 0.42),
                sample(240, 0.42, 0.44),
                sample(400, 0.43, 0.45),
                sample(1_100, 0.44, 0.46),
            ]
        )

        drafts = generate_auto_zoom_drafts(track, duration_ms=2_000)

        assert len(drafts) > 0
        assert drafts[0].reason == "movement"
        assert drafts[0].depth == 2
        assert (drafts[0].start_ms, drafts[0].end_ms) == (0, 1_020)

    def test_movement_near_click_is_suppressed(self):
        track = CursorTrack(samples=[sample(0, 0.1, 0.1), sample(100, 0.6, 0.6), sample(300, 0.6, 0.6, click=True)])

        drafts = generate_auto_zoom_drafts(track, duration_ms=3_000)

        assert [d.reason for d in drafts] == ["click"]

    def test_slow_movement_is_ignored(self):
        track = CursorTrack(samples=[sample(t, 0.1 + t / 100_000, 0.1) for t in range(0, 2_000, 100)])

        assert generate_auto_zoom_drafts(track, duration_ms=2_000) == []


class TestDegenerateInput:
    def test_missing_or_empty_track(self):
        assert generate_auto_zoom_drafts(None, duration_ms=10_000) == []
        assert generate_auto_zoom_drafts(CursorTrack(), duration_ms=10_000) == []

    def test_single_sample_or_short_duration(self):
        one = CursorTrack(samples=[sample(0, 0.5, 0.5, click=True)])
        two = CursorTrack(samples=[sample(0, 0.5, 0.5), sample(50, 0.5, 0.5, click=True)])

        assert generate_auto_zoom_drafts(one, duration_ms=10_000) == []
        assert generate_auto_zoom_drafts(two, duration_ms=100) == []

    def test_non_finite_samples_are_dropped(self):
        track = CursorTrack(samples=[sample(float("nan"), 0.5, 0.5), sample(100, 0.5, 0.5, click=True)])

        assert generate_auto_zoom_drafts(track, duration_ms=10_000) == []

    def test_track_from_dict(self):
        track = CursorTrack.from_dict(
            {
                "samples": [
                    {"timeMs": 0, "x": 0.2, "y": 0.3},
                    {"timeMs": 350, "x": 0.22, "y": 0.31, "click": True},
                    {"timeMs": "oops", "x": 0.1, "y": 0.1},
                ],
                "events": [{"type": "selection", "startMs": 10, "endMs": 20, "point": {"x": 0.1, "y": 0.2}}],
            }
        )

        assert len(track.samples) == 3
        assert track.events[0].type == "selection"
        drafts = generate_auto_zoom_drafts(track, duration_ms=2_000)
        assert [(d.start_ms, d.end_ms) for d in drafts] == [(130, 1_750)]
        assert drafts[0].to_dict()["focus"] == {"cx": 0.22, "cy": 0.31}
