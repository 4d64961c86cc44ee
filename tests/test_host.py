"""Tests for the refresh fan-out and the companion app bridge."""

from datetime import datetime, timedelta

import pytest

from conftest import ms
from familyverse.errors import UnknownMethodError
from familyverse.host import CompanionBridge, WidgetHost
from familyverse.output import WidgetSlots
from familyverse.store import DictSnapshot, PreferenceStore


class RecordingRenderer:
    """Render target that remembers what it was given."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, WidgetSlots]] = []

    def render(self, instance_id: int, slots: WidgetSlots) -> None:
        self.calls.append((instance_id, slots))


class FailingRenderer:
    def render(self, instance_id: int, slots: WidgetSlots) -> None:
        raise RuntimeError("surface gone")


class CountingProvider:
    """Snapshot provider that counts how often it is read."""

    def __init__(self, snapshot: DictSnapshot) -> None:
        self.snapshot = snapshot
        self.calls = 0

    def __call__(self) -> DictSnapshot:
        self.calls += 1
        return self.snapshot


# =============================================================================
# WidgetHost
# =============================================================================


class TestWidgetHost:
    """Tests for one-resolution-per-refresh fan-out."""

    def test_every_instance_gets_the_same_slots(self, resolver, noon: datetime) -> None:
        provider = CountingProvider(DictSnapshot({"featured_memory_title": "Picnic"}))
        host = WidgetHost(provider, resolver, clock=lambda: noon)
        renderers = {instance_id: RecordingRenderer() for instance_id in (3, 1, 2)}
        for instance_id, renderer in renderers.items():
            host.register(instance_id, renderer)

        result = host.refresh()

        assert provider.calls == 1
        assert result.ok
        assert result.rendered == [1, 2, 3]
        painted = [renderer.calls[0][1] for renderer in renderers.values()]
        assert all(slots is result.slots for slots in painted)
        assert result.slots.title == "Picnic"

    def test_failing_renderer_does_not_stop_others(self, resolver, noon: datetime) -> None:
        host = WidgetHost(DictSnapshot, resolver, clock=lambda: noon)
        good = RecordingRenderer()
        host.register(1, FailingRenderer())
        host.register(2, good)

        result = host.refresh()

        assert result.rendered == [2]
        assert result.failed == {1: "surface gone"}
        assert not result.ok
        assert len(good.calls) == 1

    def test_unregister(self, resolver, noon: datetime) -> None:
        host = WidgetHost(DictSnapshot, resolver, clock=lambda: noon)
        renderer = RecordingRenderer()
        host.register(5, renderer)
        host.unregister(5)
        host.unregister(99)

        result = host.refresh()

        assert host.instance_ids == []
        assert result.rendered == []
        assert renderer.calls == []

    def test_refresh_sees_store_writes(self, resolver, noon: datetime) -> None:
        store = PreferenceStore()
        host = WidgetHost(store.snapshot, resolver, clock=lambda: noon)

        assert host.refresh().model.action_done_today is False
        store.put_int64("last_picture_date", ms(noon - timedelta(minutes=1)))
        assert host.refresh().model.action_done_today is True
        assert host.last_result is not None
        assert host.last_result.slots.status == "Picture taken today! 📸"


# =============================================================================
# CompanionBridge
# =============================================================================


class TestCompanionBridge:
    """Tests for the companion app method channel."""

    @pytest.fixture
    def store(self) -> PreferenceStore:
        return PreferenceStore()

    def test_update_featured_memory(self, store: PreferenceStore, noon: datetime, png_envelope: str) -> None:
        bridge = CompanionBridge(store, clock=lambda: noon)

        bridge.handle(
            "updateFeaturedMemory",
            {"title": "Picnic", "imageUrl": png_envelope, "author": "Dad", "likes": 4},
        )

        snap = store.snapshot()
        assert snap.get_string("featured_memory_title") == "Picnic"
        assert snap.get_string("featured_memory_image") == png_envelope
        assert snap.get_string("featured_memory_author") == "Dad"
        assert snap.get_int64("featured_memory_date") == ms(noon)
        assert snap.get_int32("featured_memory_likes") == 4

    def test_update_featured_memory_keeps_unsent_fields(self, store: PreferenceStore, noon: datetime) -> None:
        store.put_string("featured_memory_author", "Grandma")
        bridge = CompanionBridge(store, clock=lambda: noon)

        bridge.handle("updateFeaturedMemory", {"title": "Picnic"})

        snap = store.snapshot()
        assert snap.get_string("featured_memory_author") == "Grandma"
        assert snap.get_int32("featured_memory_likes") == 0

    def test_picture_taken(self, store: PreferenceStore, noon: datetime) -> None:
        CompanionBridge(store, clock=lambda: noon).handle("pictureTaken")
        assert store.snapshot().get_int64("last_picture_date") == ms(noon)

    def test_update_nearby_stories(self, store: PreferenceStore) -> None:
        bridge = CompanionBridge(store)
        bridge.handle("updateNearbyStories", {"count": 3})
        assert store.snapshot().get_int32("nearby_stories") == 3

        bridge.handle("updateNearbyStories", {})
        assert store.snapshot().get_int32("nearby_stories") == 0

    def test_boolean_count_rejected(self, store: PreferenceStore) -> None:
        with pytest.raises(TypeError):
            CompanionBridge(store).handle("updateNearbyStories", {"count": True})

    def test_unknown_method(self, store: PreferenceStore) -> None:
        refreshes: list[bool] = []
        bridge = CompanionBridge(store, on_change=lambda: refreshes.append(True))

        with pytest.raises(UnknownMethodError, match="Method not implemented: deleteEverything"):
            bridge.handle("deleteEverything")

        assert refreshes == []
        assert len(store) == 0

    def test_every_method_triggers_refresh(self, store: PreferenceStore) -> None:
        refreshes: list[bool] = []
        bridge = CompanionBridge(store, on_change=lambda: refreshes.append(True))

        for method in bridge.methods:
            bridge.handle(method)

        assert len(refreshes) == 4

    def test_picture_taken_drives_widget(self, store: PreferenceStore, resolver, noon: datetime) -> None:
        host = WidgetHost(store.snapshot, resolver, clock=lambda: noon)
        renderer = RecordingRenderer()
        host.register(1, renderer)
        bridge = CompanionBridge(store, on_change=host.refresh, clock=lambda: noon - timedelta(hours=1))

        bridge.handle("pictureTaken")

        assert renderer.calls[-1][1].status == "Picture taken today! 📸"
