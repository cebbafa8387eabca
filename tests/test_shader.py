import numpy as np
import pytest

from luminousfield.shader import Shader, ShaderError, read_shader_sources
from luminousfield.transforms import translate


class FakeProgram:
    def __init__(self, vertex_source, fragment_source, uniforms=()):
        self.vertex_source = vertex_source
        self.fragment_source = fragment_source
        self.uniforms = {name: None for name in uniforms}
        self.values = {}
        self.use_count = 0
        self.delete_count = 0

    def use(self):
        self.use_count += 1

    def __setitem__(self, key, value):
        self.values[key] = value

    def delete(self):
        self.delete_count += 1


UNIFORMS = ("model", "flag", "count", "alpha", "size", "color")


@pytest.fixture
def sources(tmp_path):
    vertex = tmp_path / "a.vert"
    fragment = tmp_path / "a.frag"
    vertex.write_text("void main() { gl_Position = vec4(0.0); }\n")
    fragment.write_text("out vec4 c; void main() { c = vec4(1.0); }\n")
    return vertex, fragment


@pytest.fixture
def shader(sources):
    return Shader(*sources, program_factory=lambda v, f: FakeProgram(v, f, UNIFORMS))


def test_read_shader_sources_returns_file_contents(sources):
    vertex, fragment = sources
    assert read_shader_sources(vertex, fragment) == (vertex.read_text(), fragment.read_text())


def test_read_shader_sources_missing_file_raises(tmp_path, sources):
    with pytest.raises(ShaderError):
        read_shader_sources(tmp_path / "missing.vert", sources[1])


def test_missing_file_raises_before_building_program(tmp_path, sources):
    calls = []
    with pytest.raises(ShaderError):
        Shader(sources[0], tmp_path / "missing.frag", program_factory=lambda v, f: calls.append(v))
    assert calls == []


def test_factory_receives_file_contents(shader, sources):
    assert shader.program.vertex_source == sources[0].read_text()
    assert shader.program.fragment_source == sources[1].read_text()


def test_use_activates_program(shader):
    shader.use()
    assert shader.program.use_count == 1


def test_set_mat4_uploads_column_major(shader):
    offset = [1.5, 2.5, 3.5]
    shader.set_mat4("model", translate(np.identity(4), offset))
    uploaded = shader.program.values["model"]
    assert len(uploaded) == 16
    assert list(uploaded[12:15]) == pytest.approx(offset)
    assert uploaded[15] == pytest.approx(1.0)


def test_set_mat4_rejects_bad_shape(shader):
    with pytest.raises(ValueError):
        shader.set_mat4("model", np.identity(3))


def test_scalar_setters_convert_types(shader):
    shader.set_bool("flag", True)
    shader.set_int("count", 7.9)
    shader.set_float("alpha", 2)
    values = shader.program.values
    assert values["flag"] == 1
    assert values["count"] == 7
    assert values["alpha"] == 2.0 and isinstance(values["alpha"], float)


def test_vector_setters_accept_sequence_or_components(shader):
    shader.set_vec3("color", 0.25, 0.5, 0.75)
    assert shader.program.values["color"] == (0.25, 0.5, 0.75)
    shader.set_vec3("color", np.array([0.1, 0.2, 0.3]))
    assert shader.program.values["color"] == pytest.approx((0.1, 0.2, 0.3))
    shader.set_vec2("size", [3.0, 4.0])
    assert shader.program.values["size"] == (3.0, 4.0)


def test_vector_setters_reject_wrong_count(shader):
    with pytest.raises(TypeError):
        shader.set_vec3("color", 1.0, 2.0)
    with pytest.raises(TypeError):
        shader.set_vec2("size", [1.0, 2.0, 3.0])


def test_unknown_uniform_is_ignored(shader):
    shader.set_float("not_there", 1.0)
    assert "not_there" not in shader.program.values


def test_delete_is_idempotent_and_disables_use(shader):
    program = shader.program
    shader.delete()
    shader.delete()
    assert program.delete_count == 1
    assert shader.deleted is True
    with pytest.raises(ShaderError):
        shader.use()


def test_context_manager_deletes(sources):
    with Shader(*sources, program_factory=FakeProgram) as active:
        program = active.program
    assert program.delete_count == 1