import math

import numpy as np
import pytest

from luminousfield.butterfly import (
    Butterfly,
    ButterflyState,
    build_butterfly_vertices,
    random_direction,
)
from luminousfield.shader import Shader
from luminousfield.transforms import translate


class FixedRng:
    def __init__(self, *values):
        self.values = list(values)

    def uniform(self, low, high):
        return self.values.pop(0)


class FakeProgram:
    def __init__(self, names):
        self.uniforms = dict.fromkeys(names)
        self.values = {}
        self.used = 0
        self.deleted = False

    def use(self):
        self.used += 1

    def __setitem__(self, key, value):
        self.values[key] = value

    def delete(self):
        self.deleted = True


class FakeMesh:
    def __init__(self, vertices, attribute_sizes):
        self.vertices = vertices
        self.attribute_sizes = tuple(attribute_sizes)
        self.draws = 0
        self.deletes = 0

    def draw(self):
        self.draws += 1

    def delete(self):
        self.deletes += 1


@pytest.fixture
def program():
    return FakeProgram(
        ["model", "view", "projection", "leftWingAngle", "rightWingAngle"]
    )


@pytest.fixture
def shader(tmp_path, program):
    vertex = tmp_path / "butterfly.vert"
    fragment = tmp_path / "butterfly.frag"
    vertex.write_text("void main() {}")
    fragment.write_text("void main() {}")
    return Shader(vertex, fragment, program_factory=lambda v, f: program)


def test_vertex_layout():
    vertices = build_butterfly_vertices()
    assert vertices.shape == (24, 6)


def test_body_and_wing_colors():
    vertices = build_butterfly_vertices()
    assert np.allclose(vertices[:12, 3:], [0.2, 0.2, 0.2])
    assert np.allclose(vertices[12:, 3:], [0.8, 0.2, 0.8])


def test_body_faces_are_symmetric_in_depth():
    body_z = build_butterfly_vertices()[:12, 2]
    assert np.allclose(body_z[:6], -body_z[6:])
    assert np.allclose(body_z[:6], body_z[0])


def test_right_wings_mirror_left_wings():
    wings = build_butterfly_vertices()[12:, :3]
    left, right = wings[:6], wings[6:]
    assert np.allclose(right[:, 0], -left[:, 0])
    assert np.allclose(right[:, 1], left[:, 1])


def test_random_direction_is_unit_and_flat():
    direction = random_direction(FixedRng(0.3))
    assert math.isclose(np.linalg.norm(direction), 1.0)
    assert direction[1] == 0.0


@pytest.mark.parametrize(
    "draw, expected",
    [
        (0.0, [1.0, 0.0, 0.0]),
        (0.25, [0.0, 0.0, 1.0]),
        (0.5, [-1.0, 0.0, 0.0]),
        (-0.25, [0.0, 0.0, -1.0]),
    ],
)
def test_random_direction_pinned_values(draw, expected):
    assert np.allclose(random_direction(FixedRng(draw)), expected, atol=1e-5)


def test_default_state():
    state = ButterflyState(rng=FixedRng(0.1))
    assert np.allclose(state.position, [0.0, 1.5, 0.0])
    assert np.allclose(state.direction, random_direction(FixedRng(0.1)))


def test_update_moves_and_flaps():
    state = ButterflyState(direction=[1.0, 0.0, 0.0], rng=FixedRng())
    state.update(0.5, 0.0)
    assert math.isclose(state.wing_angle, state.wing_speed * 0.5)
    assert math.isclose(state.position[0], 0.5)
    assert math.isclose(state.position[1], 1.5)
    assert math.isclose(state.time_since_direction_change, 0.5)


def test_direction_changes_when_chance_is_high():
    state = ButterflyState(direction=[1.0, 0.0, 0.0], rng=FixedRng(0.9, 0.25))
    state.update(3.5, 0.0)
    assert np.allclose(state.direction, random_direction(FixedRng(0.25)))
    assert state.time_since_direction_change == 0.0


def test_direction_kept_when_chance_is_low():
    state = ButterflyState(direction=[1.0, 0.0, 0.0], rng=FixedRng(0.5))
    state.update(3.5, 0.0)
    assert np.allclose(state.direction, [1.0, 0.0, 0.0])
    assert state.time_since_direction_change == 0.0


def test_boundary_turns_back_towards_origin():
    state = ButterflyState(
        position=[11.0, 1.5, 2.0], direction=[1.0, 0.0, 0.0], rng=FixedRng()
    )
    state.update(0.1, 0.0)
    flat = np.array([state.position[0], 0.0, state.position[2]])
    assert np.dot(state.direction, flat) < 0
    assert math.isclose(np.linalg.norm(state.direction), 1.0)
    assert state.direction[1] == 0.0


def test_model_matrix_translation_and_heading():
    state = ButterflyState(
        position=[2.0, 1.5, -3.0], direction=[1.0, 0.0, 0.0], rng=FixedRng()
    )
    model = state.model_matrix()
    assert np.allclose(model[:3, 3], state.position)
    assert np.allclose((model @ np.array([0.0, 0.0, 1.0, 0.0]))[:3], state.direction)


def test_model_matrix_facing_positive_z_has_no_rotation():
    state = ButterflyState(direction=[0.0, 0.0, 1.0], rng=FixedRng())
    assert np.allclose(state.model_matrix(), translate(np.identity(4), state.position))


def test_wing_angles():
    state = ButterflyState(direction=[1.0, 0.0, 0.0], rng=FixedRng())
    assert state.wing_angles() == (0.5, 0.5)
    state.wing_angle = 1.234
    left, right = state.wing_angles()
    assert math.isclose(left + right, 1.0)
    assert 0.0 <= left <= 1.0


def test_butterfly_uploads_mesh(shader):
    butterfly = Butterfly(shader, ButterflyState(rng=FixedRng(0.0)), FakeMesh)
    mesh = butterfly._mesh
    assert mesh.attribute_sizes == (3, 3)
    assert np.array_equal(mesh.vertices, build_butterfly_vertices())


def test_butterfly_draw_sets_uniforms(shader, program):
    state = ButterflyState(
        position=[1.0, 1.5, 1.0], direction=[0.0, 0.0, -1.0], rng=FixedRng()
    )
    butterfly = Butterfly(shader, state, FakeMesh)
    butterfly.update(0.2, 1.0)
    view = translate(np.identity(4), [0.0, 0.0, -3.0])
    butterfly.draw(view, np.identity(4))
    model = np.array(program.values["model"]).reshape(4, 4, order="F")
    assert np.allclose(model, state.model_matrix())
    uploaded_view = np.array(program.values["view"]).reshape(4, 4, order="F")
    assert np.allclose(uploaded_view, view)
    left, right = state.wing_angles()
    assert math.isclose(program.values["leftWingAngle"], left)
    assert math.isclose(program.values["rightWingAngle"], right)
    assert program.used == 1
    assert butterfly._mesh.draws == 1


def test_butterfly_delete_is_idempotent(shader):
    butterfly = Butterfly(shader, ButterflyState(rng=FixedRng(0.0)), FakeMesh)
    mesh = butterfly._mesh
    butterfly.delete()
    butterfly.delete()
    assert mesh.deletes == 1
    with pytest.raises(RuntimeError):
        butterfly.draw(np.identity(4), np.identity(4))