"""
Unit tests for the selection state machine and camera derivation
"""
import pytest

from places_map.camera import MapViewController
from places_map.models import UNSELECTED, CameraState, Selected
from places_map.selection import SelectionController, camera_for

from conftest import LONDON, make_poi


@pytest.fixture
def controller(surface, registry):
    camera = MapViewController(surface, duration=1.5)
    camera.mark_ready()
    return SelectionController(LONDON, camera, registry, default_zoom=15, detail_zoom=18)


def test_camera_for_is_a_pure_derivation(three_places):
    by_id = {p.id: p for p in three_places}
    target = three_places[1]
    assert camera_for(Selected(target.id), by_id, LONDON, 15, 18) == CameraState(target.coordinate, 18, True)
    assert camera_for(UNSELECTED, by_id, LONDON, 15, 18, initial=True) == CameraState(LONDON, 15, False)
    assert camera_for(UNSELECTED, by_id, LONDON, 15, 18) == CameraState(LONDON, 15, True)


def test_initial_camera_snaps_to_reference(controller, surface):
    assert controller.selection is UNSELECTED
    assert surface.commands == [("set_view", LONDON, 15)]


def test_pick_moves_camera_and_opens_popup_once(controller, surface, registry, three_places):
    """Scenario C"""
    surface.show_places(three_places)
    controller.replace_pois(three_places)
    x = three_places[2]

    assert controller.pick(x.id) is True
    assert controller.selection == Selected(x.id)
    assert controller.current_camera() == CameraState(x.coordinate, 18, True)
    assert surface.commands[-1] == ("fly_to", x.coordinate, 18, 1.5)
    assert registry.popup_requests == [x.id]
    assert surface.layer.popup_id == x.id


def test_pick_before_marker_mounts_still_moves_camera(controller, surface, registry, three_places):
    controller.replace_pois(three_places)
    assert controller.pick("node/1") is True
    assert registry.popup_requests == ["node/1"]
    assert surface.commands[-1][0] == "fly_to"
    assert surface.layer.popup_id is None


def test_switching_selection(controller, three_places):
    controller.replace_pois(three_places)
    controller.pick("node/1")
    controller.pick("node/2")
    assert controller.selected_id == "node/2"
    assert controller.selected is three_places[1]


def test_pick_outside_active_set_is_rejected(controller, three_places):
    controller.replace_pois(three_places)
    assert controller.pick("node/99") is False
    assert controller.selection is UNSELECTED


def test_replacement_without_selected_id_unselects(controller, surface, three_places):
    controller.replace_pois(three_places)
    controller.pick("node/3")
    controller.replace_pois((make_poi(5, name="Other"),))
    assert controller.selection is UNSELECTED
    assert controller.current_camera() == CameraState(LONDON, 15, True)
    assert surface.commands[-1] == ("fly_to", LONDON, 15, 1.5)


def test_replacement_keeping_selected_id_keeps_selection(controller, three_places):
    controller.replace_pois(three_places)
    controller.pick("node/2")
    controller.replace_pois(three_places[1:])
    assert controller.selected_id == "node/2"


def test_clear_closes_popup(controller, surface, three_places):
    surface.show_places(three_places)
    controller.replace_pois(three_places)
    controller.pick("node/1")
    controller.clear()
    assert controller.selection is UNSELECTED
    assert surface.layer.popup_id is None


def test_detail_zoom_must_exceed_default(surface, registry):
    with pytest.raises(ValueError):
        SelectionController(LONDON, MapViewController(surface), registry, default_zoom=16, detail_zoom=16)
